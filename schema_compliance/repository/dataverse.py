"""Dataverse Web API implementation of the metadata repository."""

import logging
from typing import Any

import httpx

from schema_compliance.config import DataverseConfig, TokenProvider
from schema_compliance.models import parse_attribute_type
from schema_compliance.repository.base import Err, Ok
from schema_compliance.schemas import AttributeDescriptor, EntityDescriptor, SolutionRef

logger = logging.getLogger(__name__)

# solutioncomponents.componenttype for entities
ENTITY_COMPONENT_TYPE = 1

# Raised while reading an unexpectedly shaped payload
MALFORMED_PAYLOAD_ERRORS = (AttributeError, KeyError, TypeError, ValueError)

ENTITY_SELECT = "LogicalName,SchemaName,DisplayName,MetadataId,IconVectorName,IsCustomEntity"
ATTRIBUTE_SELECT = (
    "LogicalName,AttributeType,DisplayName,CreatedOn,IsCustomAttribute,AttributeTypeName"
)


def _label(display_name: dict[str, Any] | None) -> str | None:
    if not display_name:
        return None
    localized = display_name.get("UserLocalizedLabel") or {}
    return localized.get("Label") or None


def parse_entity(payload: dict[str, Any]) -> EntityDescriptor:
    """
    Convert an EntityDefinitions payload into an EntityDescriptor.

    Args:
        payload: JSON object returned by the Web API.

    Returns:
        EntityDescriptor: Parsed descriptor; display name falls back to logical name.
    """
    logical_name = payload["LogicalName"]
    return EntityDescriptor(
        logical_name=logical_name,
        schema_name=payload.get("SchemaName") or logical_name,
        display_name=_label(payload.get("DisplayName")) or logical_name,
        metadata_id=payload.get("MetadataId"),
        is_custom_entity=bool(payload.get("IsCustomEntity")),
        has_icon=bool(payload.get("IconVectorName")),
    )


def parse_attribute(payload: dict[str, Any]) -> AttributeDescriptor:
    """Convert an Attributes payload entry into an AttributeDescriptor."""
    type_name = (payload.get("AttributeTypeName") or {}).get("Value")
    return AttributeDescriptor(
        logical_name=payload["LogicalName"],
        attribute_type=parse_attribute_type(payload.get("AttributeType"), type_name),
        is_custom_attribute=bool(payload.get("IsCustomAttribute")),
        created_on=payload.get("CreatedOn"),
    )


class DataverseMetadataRepository:
    """
    Reads customization metadata over the Dataverse Web API.

    The HTTP client and token provider are injected; this class holds no
    token cache of its own, so independent validation runs can share one
    client or use separate ones.
    """

    def __init__(self, client: httpx.AsyncClient, token_provider: TokenProvider):
        self._client = client
        self._token_provider = token_provider

    @classmethod
    def from_config(
        cls, config: DataverseConfig, token_provider: TokenProvider
    ) -> "DataverseMetadataRepository":
        return cls(client=config.create_client(), token_provider=token_provider)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _get(
        self, path: str, params: dict[str, str] | None = None
    ) -> Ok[dict[str, Any]] | Err:
        try:
            token = await self._token_provider()
        except Exception as exc:
            logger.warning("Token provider failed for %s: %s", path, exc)
            return Err(message=f"Could not acquire access token for {path}: {exc}")

        try:
            response = await self._client.get(
                path,
                params=params,
                headers={"Authorization": f"Bearer {token}"},
            )
        except httpx.HTTPError as exc:
            logger.debug("Request to %s failed: %s", path, exc)
            return Err(message=f"Request to {path} failed: {exc}")

        if response.status_code == httpx.codes.NOT_FOUND:
            return Err(message=f"Not found: {path}", not_found=True)
        if response.is_error:
            return Err(
                message=f"Request to {path} failed with HTTP {response.status_code}: {response.text}"
            )
        try:
            payload = response.json()
        except ValueError as exc:
            return Err(message=f"Invalid JSON from {path}: {exc}")
        if not isinstance(payload, dict):
            return Err(
                message=f"Expected a JSON object from {path}, got {type(payload).__name__}"
            )
        return Ok[dict[str, Any]](value=payload)

    async def resolve_solution(self, unique_name: str) -> Ok[SolutionRef] | Err:
        result = await self._get(
            "solutions",
            params={
                "$filter": f"uniquename eq '{unique_name}'",
                "$select": "solutionid,friendlyname,uniquename",
            },
        )
        if isinstance(result, Err):
            return result

        rows = result.value.get("value") or []
        if not rows:
            return Err(message=f"Solution not found: {unique_name}", not_found=True)
        try:
            row = rows[0]
            solution = SolutionRef(
                id=row["solutionid"],
                unique_name=row.get("uniquename") or unique_name,
                friendly_name=row.get("friendlyname"),
            )
        except MALFORMED_PAYLOAD_ERRORS as exc:
            return Err(message=f"Malformed solution metadata for {unique_name}: {exc}")
        return Ok[SolutionRef](value=solution)

    async def list_entity_component_ids(self, solution_id: str) -> Ok[list[str]] | Err:
        result = await self._get(
            "solutioncomponents",
            params={
                "$filter": (
                    f"_solutionid_value eq {solution_id} "
                    f"and componenttype eq {ENTITY_COMPONENT_TYPE}"
                ),
                "$select": "objectid",
            },
        )
        if isinstance(result, Err):
            return result
        try:
            component_ids = [
                row["objectid"] for row in result.value.get("value") or [] if row.get("objectid")
            ]
        except MALFORMED_PAYLOAD_ERRORS as exc:
            return Err(message=f"Malformed components for solution {solution_id}: {exc}")
        return Ok[list[str]](value=component_ids)

    async def resolve_entity_logical_name(self, component_id: str) -> Ok[str] | Err:
        result = await self._get(
            f"EntityDefinitions({component_id})",
            params={"$select": "LogicalName,SchemaName"},
        )
        if isinstance(result, Err):
            return result
        logical_name = result.value.get("LogicalName")
        if not isinstance(logical_name, str) or not logical_name:
            return Err(message=f"No LogicalName for component {component_id}")
        return Ok[str](value=logical_name)

    async def get_entity_descriptor(self, logical_name: str) -> Ok[EntityDescriptor] | Err:
        result = await self._get(
            f"EntityDefinitions(LogicalName='{logical_name}')",
            params={"$select": ENTITY_SELECT},
        )
        if isinstance(result, Err):
            return result
        try:
            return Ok[EntityDescriptor](value=parse_entity(result.value))
        except MALFORMED_PAYLOAD_ERRORS as exc:
            return Err(message=f"Malformed entity metadata for {logical_name}: {exc}")

    async def list_attributes(self, logical_name: str) -> Ok[list[AttributeDescriptor]] | Err:
        result = await self._get(
            f"EntityDefinitions(LogicalName='{logical_name}')/Attributes",
            params={"$select": ATTRIBUTE_SELECT},
        )
        if isinstance(result, Err):
            return result
        try:
            attributes = [parse_attribute(row) for row in result.value.get("value") or []]
        except MALFORMED_PAYLOAD_ERRORS as exc:
            return Err(message=f"Malformed attribute metadata for {logical_name}: {exc}")
        return Ok[list[AttributeDescriptor]](value=attributes)

    async def get_option_set_global_flag(
        self, logical_name: str, attribute_logical_name: str
    ) -> Ok[bool | None] | Err:
        result = await self._get(
            f"EntityDefinitions(LogicalName='{logical_name}')"
            f"/Attributes(LogicalName='{attribute_logical_name}')"
            "/Microsoft.Dynamics.CRM.PicklistAttributeMetadata",
            params={"$select": "LogicalName", "$expand": "OptionSet($select=IsGlobal)"},
        )
        if isinstance(result, Err):
            return result
        option_set = result.value.get("OptionSet")
        if not isinstance(option_set, dict):
            return Ok[bool | None](value=None)
        return Ok[bool | None](value=bool(option_set.get("IsGlobal")))
