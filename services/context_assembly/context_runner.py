"""Context runner entry point.

Assembles the context for a single query against the configured document
source and prints it to stdout.

Usage:
    python -m services.context_assembly.context_runner "travel reimbursement policy"
    python -m services.context_assembly.context_runner --document <page-id>
"""

import argparse
import asyncio

from services.context_assembly.ContextService import ContextService
from shared.clients.dms.DMSClientManager import DMSClientManager
from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import setup_logging


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Assemble LLM context from the configured document source.")
    parser.add_argument("query", nargs="?", help="free-text query to build the context for")
    parser.add_argument("--document", dest="document_id", help="build the context of a single document instead")
    args = parser.parse_args(argv)
    if not args.query and not args.document_id:
        parser.error("either a query or --document is required")
    return args


async def main(argv: list[str] | None = None) -> None:
    """Build and print the context."""
    args = parse_args(argv)
    logger = setup_logging()
    config = HelperConfig(logger=logger)

    dms_client = DMSClientManager(helper_config=config).get_client()
    context_service = ContextService(helper_config=config, dms_client=dms_client)

    try:
        await dms_client.boot()
        if args.document_id:
            text = await context_service.do_build_document_context(args.document_id)
        else:
            bundle = await context_service.do_build_bundle(args.query)
            if bundle.failed_document_ids:
                logger.warning("Documents excluded from context: %s", ", ".join(bundle.failed_document_ids))
            text = bundle.text
        print(text)
    finally:
        await dms_client.close()


if __name__ == "__main__":
    asyncio.run(main())
