"""FastAPI application entry point for the context bridge."""

import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shared.logging.logging_setup import setup_logging
from shared.helper.HelperConfig import HelperConfig
from shared.exceptions import ConfigurationError
from shared.clients.ClientInterface import ClientInterface
from shared.clients.dms.DMSClientManager import DMSClientManager
from shared.clients.rag.RAGClientManager import RAGClientManager
from services.context_assembly.ContextService import ContextService
from services.context_assembly.RetrievalContextService import RetrievalContextService
from server.routers.ContextRouter import router as context_router

logging = setup_logging()
app_version = os.getenv("APP_VERSION", "unknown")

CONTEXT_SOURCES = ("keyword", "retrieval")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # when the app starts
    app.state.logging = logging
    app.state.helper_config = HelperConfig(logger=logging)

    source_name = app.state.helper_config.get_string_val("CONTEXT_SOURCE", default="keyword").lower()
    if source_name not in CONTEXT_SOURCES:
        raise ConfigurationError(f"Unsupported CONTEXT_SOURCE '{source_name}', expected one of {CONTEXT_SOURCES}.")
    # fail before serving if the key is not configured
    app.state.helper_config.get_string_val("API_SERVER_API_KEY")

    dms_client = DMSClientManager(helper_config=app.state.helper_config).get_client()
    rag_clients = []
    if source_name == "retrieval":
        rag_clients = RAGClientManager(helper_config=app.state.helper_config).get_clients()
    clients: list[ClientInterface] = [dms_client, *rag_clients]

    logging.info("Booting all clients...")
    for client in clients:
        await client.boot()
    logging.info("All clients booted successfully.")

    app.state.dms_client = dms_client
    app.state.rag_clients = rag_clients
    app.state.context_service = ContextService(helper_config=app.state.helper_config, dms_client=dms_client)
    app.state.context_source_name = source_name
    if source_name == "retrieval":
        app.state.context_source = RetrievalContextService(helper_config=app.state.helper_config, rag_clients=rag_clients)
    else:
        app.state.context_source = app.state.context_service

    await check_connections(clients)

    # while the app is running...
    yield

    # when the app shuts down, close all client connections
    logging.info("Shutting down, closing all clients...")
    for client in clients:
        await client.close()
    logging.info("All clients closed.")


app = FastAPI(
    title="context_bridge",
    description=(
        "Turns a free-text question into a single context string for a language model. "
        "Documents of a block-structured workspace (e.g. Notion) are ranked by keyword overlap, "
        "flattened to text and served via POST /context."
    ),
    version=app_version,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(context_router)


async def check_connections(clients: list[ClientInterface]) -> None:
    """Check connectivity to all configured backends on startup.

    Failures are non-fatal: the server stays up and requests fail with 502
    until the backend is reachable again.
    """
    for client in clients:
        try:
            result: httpx.Response = await client.do_healthcheck()
        except httpx.HTTPError as e:
            logging.warning("Client '%s' is not reachable: %s", client.__class__.__name__, e)
            continue
        if not result.is_success:
            logging.warning(
                "Client '%s' is not reachable (status %d). Context requests may fail.",
                client.__class__.__name__,
                result.status_code,
            )


if __name__ == "__main__":
    import uvicorn

    logging.info(
        "Starting context_bridge API Server v%s from root dir: %s on port 8000...",
        app_version,
        os.environ.get("ROOT_DIR", "unknown"),
    )
    uvicorn.run(app, host="0.0.0.0", port=8000)
