from datetime import datetime
from urllib.parse import urlencode

import httpx

from shared.clients.dms.DMSClientInterface import DMSClientInterface
from shared.clients.dms.models.Block import Block, BlockKind, BlocksListResponse
from shared.clients.dms.models.Document import DocumentDetails, DocumentsListResponse
from shared.clients.dms.models.Property import PropertyKind, PropertyValue
from shared.clients.dms.models.RichText import RichTextSpan
from shared.exceptions import ClientRequestError
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig

NOTION_MAX_PAGE_SIZE = 100


class DMSClientNotion(DMSClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._base_url = self.get_config_val("BASE_URL", default="https://api.notion.com/v1", val_type="string")
        self._api_key = self.get_config_val("API_KEY", default=None, val_type="string")
        self._api_version = self.get_config_val("VERSION", default="2022-06-28", val_type="string")
        self._database_id = self.get_config_val("DATABASE_ID", default="", val_type="string")

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Notion"

    def get_max_page_size(self) -> int:
        return NOTION_MAX_PAGE_SIZE

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default="https://api.notion.com/v1"),
            EnvConfig(env_key="API_KEY", val_type="string", default=None),
            EnvConfig(env_key="VERSION", val_type="string", default="2022-06-28"),
            EnvConfig(env_key="DATABASE_ID", val_type="string", default=""),
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Notion-Version": self._api_version,
        }

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_healthcheck(self) -> str:
        return "/users/me"

    def _get_endpoint_documents(self, cursor: str | None = None, page_size: int = 100) -> str:
        # without a database the whole workspace is searched
        if self._database_id:
            return f"/databases/{self._database_id}/query"
        return "/search"

    def _get_documents_method(self) -> str:
        return "POST"

    def _get_documents_payload(self, cursor: str | None = None, page_size: int = 100) -> dict | None:
        payload: dict = {"page_size": page_size}
        if cursor:
            payload["start_cursor"] = cursor
        if not self._database_id:
            payload["filter"] = {"property": "object", "value": "page"}
        return payload

    def _get_endpoint_document_details(self, document_id: str) -> str:
        return f"/pages/{document_id}"

    def _get_endpoint_block_children(self, block_id: str, cursor: str | None = None, page_size: int = 100) -> str:
        params: dict = {"page_size": page_size}
        if cursor:
            params["start_cursor"] = cursor
        return f"/blocks/{block_id}/children?{urlencode(params)}"

    ################ ERRORS ##################
    def _build_request_error(self, response: httpx.Response, url: str) -> ClientRequestError:
        # notion error bodies look like {"object": "error", "status": 400, "code": "...", "message": "..."}
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        message = body.get("message") or f"Request to {url} failed with status {response.status_code}"
        return ClientRequestError(
            message,
            status_code=response.status_code,
            code=body.get("code"),
            url=url,
        )

    def _is_skippable_error(self, error: ClientRequestError) -> bool:
        return error.code == "validation_error"

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    ############### LIST RESPONSES ###############
    def _parse_endpoint_documents(self, response: dict) -> DocumentsListResponse:
        # search results can contain databases as well, only pages are documents
        docs = [
            self._parse_endpoint_document(item)
            for item in response.get("results", [])
            if item.get("object") == "page"
        ]
        return DocumentsListResponse(
            engine=self._get_engine_name(),
            documents=docs,
            nextCursor=response.get("next_cursor"),
            hasMore=bool(response.get("has_more")),
        )

    def _parse_endpoint_block_children(self, response: dict) -> BlocksListResponse:
        blocks = [self._parse_block(item) for item in response.get("results", [])]
        return BlocksListResponse(
            engine=self._get_engine_name(),
            blocks=blocks,
            nextCursor=response.get("next_cursor"),
            hasMore=bool(response.get("has_more")),
        )

    ############### GET RESPONSES ###############
    def _parse_endpoint_document(self, response: dict) -> DocumentDetails:
        properties = {
            name: self._parse_property(name, raw)
            for name, raw in (response.get("properties") or {}).items()
        }
        return DocumentDetails(
            #base
            engine=self._get_engine_name(),
            id=response.get("id"),

            #details
            title=self._parse_title(properties),
            properties=properties,
            created_time=self._parse_datetime(response.get("created_time")),
            last_edited_time=self._parse_datetime(response.get("last_edited_time")),
            created_by=self._parse_user(response.get("created_by")),
            last_edited_by=self._parse_user(response.get("last_edited_by")),
            url=response.get("url"),
        )

    ############### HELPERS ###############
    def _parse_block(self, raw: dict) -> Block:
        raw_type = raw.get("type") or ""
        payload = raw.get(raw_type)
        if not isinstance(payload, dict):
            payload = {}

        icon = payload.get("icon") or {}
        media_file = payload.get("file") or {}
        media_external = payload.get("external") or {}
        cells = payload.get("cells")

        return Block(
            engine=self._get_engine_name(),
            id=raw.get("id"),
            kind=BlockKind.from_raw(raw_type),
            raw_type=raw_type,
            has_children=bool(raw.get("has_children")),
            rich_text=self._parse_rich_text(payload.get("rich_text")),
            caption=self._parse_rich_text(payload.get("caption")),
            cells=[self._parse_rich_text(cell) or [] for cell in cells] if isinstance(cells, list) else None,
            language=payload.get("language"),
            checked=payload.get("checked"),
            expression=payload.get("expression"),
            icon=icon.get("emoji") if isinstance(icon, dict) else None,
            url=payload.get("url") or media_file.get("url") or media_external.get("url"),
            name=payload.get("name") or payload.get("title"),
        )

    def _parse_property(self, name: str, raw: dict) -> PropertyValue:
        raw_type = raw.get("type") or ""
        kind = PropertyKind.from_raw(raw_type)
        value = raw.get(raw_type)
        prop = PropertyValue(name=name, kind=kind, raw_type=raw_type)

        if kind in (PropertyKind.TITLE, PropertyKind.RICH_TEXT):
            prop.rich_text = self._parse_rich_text(value)
        elif kind == PropertyKind.NUMBER:
            prop.number = value
        elif kind in (PropertyKind.SELECT, PropertyKind.STATUS):
            prop.text = (value or {}).get("name")
        elif kind == PropertyKind.MULTI_SELECT:
            prop.names = [option.get("name") for option in value or [] if option.get("name")]
        elif kind == PropertyKind.PEOPLE:
            prop.names = [user_name for user_name in (self._parse_user(person) for person in value or []) if user_name]
        elif kind == PropertyKind.FILES:
            prop.names = [file.get("name") or "file" for file in value or []]
        elif kind == PropertyKind.DATE:
            prop.date_start = (value or {}).get("start")
            prop.date_end = (value or {}).get("end")
        elif kind in (PropertyKind.CHECKBOX, PropertyKind.BOOLEAN):
            prop.boolean = value
        elif kind in (PropertyKind.CREATED_BY, PropertyKind.LAST_EDITED_BY):
            prop.text = self._parse_user(value)
        elif kind in (
            PropertyKind.URL,
            PropertyKind.EMAIL,
            PropertyKind.PHONE_NUMBER,
            PropertyKind.STRING,
            PropertyKind.CREATED_TIME,
            PropertyKind.LAST_EDITED_TIME,
        ):
            prop.text = value
        elif kind == PropertyKind.RELATION:
            prop.relation_count = len(value) if value is not None else None
        elif kind == PropertyKind.FORMULA:
            prop.inner = self._parse_property(name, value) if isinstance(value, dict) else None
        elif kind == PropertyKind.ROLLUP and isinstance(value, dict):
            if value.get("type") == "array":
                prop.items = [self._parse_property(name, item) for item in value.get("array") or []]
            else:
                prop.inner = self._parse_property(name, value)
        elif kind == PropertyKind.ARRAY:
            prop.items = [self._parse_property(name, item) for item in value or []]
        return prop

    def _parse_title(self, properties: dict[str, PropertyValue]) -> str:
        for prop in properties.values():
            if prop.kind == PropertyKind.TITLE:
                return "".join(span.plain_text for span in prop.rich_text or []) or "Untitled"
        return "Untitled"

    def _parse_rich_text(self, raw: list | None) -> list[RichTextSpan] | None:
        if not isinstance(raw, list):
            return None
        return [
            RichTextSpan(
                plain_text=item.get("plain_text") or (item.get("text") or {}).get("content", ""),
                href=item.get("href"),
                annotations=item.get("annotations"),
            )
            for item in raw
        ]

    def _parse_user(self, raw: dict | None) -> str | None:
        if not raw:
            return None
        person = raw.get("person") or {}
        return raw.get("name") or person.get("name") or raw.get("id")

    def _parse_datetime(self, raw: str | None) -> datetime | None:
        if not raw:
            return None
        return datetime.fromisoformat(raw.replace("Z", "+00:00"))
