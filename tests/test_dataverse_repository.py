"""Tests for the Dataverse Web API metadata repository."""

from collections.abc import Callable

import httpx

from schema_compliance.audit import AuditLogger
from schema_compliance.config import AuditConfig, DataverseConfig, static_token_provider
from schema_compliance.models import AttributeType
from schema_compliance.repository import DataverseMetadataRepository, Err, Ok
from schema_compliance.repository.dataverse import parse_attribute, parse_entity
from schema_compliance.pipeline.orchestrator import ValidationOrchestrator
from schema_compliance.schemas import ValidationRequest

API_PREFIX = "/api/data/v9.2/"


def _repository(
    handler: Callable[[httpx.Request], httpx.Response],
) -> DataverseMetadataRepository:
    config = DataverseConfig(organization_url="https://contoso.crm.dynamics.com/")
    client = config.create_client(transport=httpx.MockTransport(handler))
    return DataverseMetadataRepository(client, static_token_provider("token-123"))


def _path(request: httpx.Request) -> str:
    return request.url.path.removeprefix(API_PREFIX)


def test_parse_entity_falls_back_to_logical_name() -> None:
    """Missing labels fall back to the logical name; the icon drives has_icon."""
    entity = parse_entity(
        {
            "LogicalName": "sic_project",
            "SchemaName": "sic_Project",
            "DisplayName": {"UserLocalizedLabel": None},
            "IconVectorName": "sic_/icons/project.svg",
            "IsCustomEntity": True,
        }
    )

    assert entity.display_name == "sic_project"
    assert entity.schema_name == "sic_Project"
    assert entity.has_icon is True


def test_parse_attribute_prefers_type_name() -> None:
    """AttributeTypeName wins over AttributeType."""
    attribute = parse_attribute(
        {
            "LogicalName": "sic_contactid",
            "AttributeType": "Customer",
            "AttributeTypeName": {"Value": "LookupType"},
            "IsCustomAttribute": True,
            "CreatedOn": "2026-02-01T10:00:00Z",
        }
    )

    assert attribute.attribute_type == AttributeType.LOOKUP
    assert attribute.created_on is not None
    assert attribute.created_on.year == 2026


async def test_resolve_solution_sends_filter_and_token() -> None:
    """Looks the solution up by unique name with a bearer token."""
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={
                "value": [
                    {"solutionid": "s-1", "uniquename": "core", "friendlyname": "Core"}
                ]
            },
        )

    repository = _repository(handler)
    result = await repository.resolve_solution("core")
    await repository.aclose()

    assert isinstance(result, Ok)
    assert result.value.id == "s-1"
    assert result.value.friendly_name == "Core"
    [request] = seen
    assert _path(request) == "solutions"
    assert request.url.params["$filter"] == "uniquename eq 'core'"
    assert request.headers["Authorization"] == "Bearer token-123"
    assert request.headers["OData-Version"] == "4.0"


async def test_empty_solution_lookup_is_not_found() -> None:
    """No matching rows is a not-found error."""
    repository = _repository(lambda request: httpx.Response(200, json={"value": []}))

    result = await repository.resolve_solution("missing")

    assert isinstance(result, Err)
    assert result.not_found is True


async def test_http_errors_become_err_values() -> None:
    """404 is not-found; other failures are plain errors."""

    def handler(request: httpx.Request) -> httpx.Response:
        if "sic_gone" in request.url.path:
            return httpx.Response(404, json={"error": {"message": "gone"}})
        return httpx.Response(503, text="unavailable")

    repository = _repository(handler)

    missing = await repository.get_entity_descriptor("sic_gone")
    failing = await repository.list_attributes("sic_busy")

    assert isinstance(missing, Err) and missing.not_found is True
    assert isinstance(failing, Err) and failing.not_found is False
    assert "503" in failing.message


async def test_transport_errors_become_err_values() -> None:
    """Connection failures never raise out of the repository."""

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    result = await _repository(handler).list_entity_component_ids("s-1")

    assert isinstance(result, Err)
    assert "connection refused" in result.message


async def test_component_and_entity_queries() -> None:
    """Components resolve to logical names and entities parse."""

    def handler(request: httpx.Request) -> httpx.Response:
        path = _path(request)
        if path == "solutioncomponents":
            assert "componenttype eq 1" in request.url.params["$filter"]
            return httpx.Response(
                200, json={"value": [{"objectid": "m-1"}, {"objectid": None}]}
            )
        if path == "EntityDefinitions(m-1)":
            return httpx.Response(200, json={"LogicalName": "sic_project"})
        if path == "EntityDefinitions(LogicalName='sic_project')":
            return httpx.Response(
                200,
                json={
                    "LogicalName": "sic_project",
                    "SchemaName": "sic_project",
                    "DisplayName": {"UserLocalizedLabel": {"Label": "Project"}},
                    "MetadataId": "m-1",
                    "IsCustomEntity": True,
                    "IconVectorName": None,
                },
            )
        if path == "EntityDefinitions(LogicalName='sic_project')/Attributes":
            return httpx.Response(
                200,
                json={
                    "value": [
                        {
                            "LogicalName": "sic_status",
                            "AttributeType": "Picklist",
                            "IsCustomAttribute": True,
                        }
                    ]
                },
            )
        return httpx.Response(404)

    repository = _repository(handler)

    components = await repository.list_entity_component_ids("s-1")
    name = await repository.resolve_entity_logical_name("m-1")
    entity = await repository.get_entity_descriptor("sic_project")
    attributes = await repository.list_attributes("sic_project")

    assert isinstance(components, Ok) and components.value == ["m-1"]
    assert isinstance(name, Ok) and name.value == "sic_project"
    assert isinstance(entity, Ok)
    assert entity.value.display_name == "Project"
    assert entity.value.has_icon is False
    assert isinstance(attributes, Ok)
    assert attributes.value[0].attribute_type == AttributeType.PICKLIST


async def test_option_set_global_flag() -> None:
    """Reads IsGlobal from the expanded option set; no option set means unknown."""

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path.endswith("/Microsoft.Dynamics.CRM.PicklistAttributeMetadata")
        if "sic_local" in request.url.path:
            return httpx.Response(200, json={"OptionSet": {"IsGlobal": False}})
        if "sic_global" in request.url.path:
            return httpx.Response(200, json={"OptionSet": {"IsGlobal": True}})
        return httpx.Response(200, json={"OptionSet": None})

    repository = _repository(handler)

    local = await repository.get_option_set_global_flag("sic_project", "sic_local")
    global_ = await repository.get_option_set_global_flag("sic_project", "sic_global")
    unknown = await repository.get_option_set_global_flag("sic_project", "sic_other")

    assert isinstance(local, Ok) and local.value is False
    assert isinstance(global_, Ok) and global_.value is True
    assert isinstance(unknown, Ok) and unknown.value is None


async def test_invalid_json_is_an_error() -> None:
    """A non-JSON body is reported as an error."""
    repository = _repository(lambda request: httpx.Response(200, text="<html>"))

    result = await repository.get_option_set_global_flag("sic_project", "sic_status")

    assert isinstance(result, Err)
    assert "Invalid JSON" in result.message


def _entity_payload(logical_name: str) -> dict:
    return {
        "LogicalName": logical_name,
        "SchemaName": logical_name,
        "DisplayName": {"UserLocalizedLabel": {"Label": logical_name}},
        "IsCustomEntity": True,
        "IconVectorName": "icon.svg",
    }


def _explicit_handler(request: httpx.Request) -> httpx.Response:
    path = _path(request)
    if path.endswith("/Attributes"):
        return httpx.Response(
            200,
            json={
                "value": [
                    {
                        "LogicalName": "sic_updatedbyprocess",
                        "AttributeType": "String",
                        "IsCustomAttribute": True,
                    }
                ]
            },
        )
    logical_name = path.split("'")[1]
    return httpx.Response(200, json=_entity_payload(logical_name))


async def test_token_failure_drops_only_that_entity() -> None:
    """A token provider failure becomes an Err and the run carries on."""
    calls: list[int] = []

    async def flaky_token_provider() -> str:
        calls.append(1)
        if len(calls) == 1:
            raise RuntimeError("token endpoint unavailable")
        return "token-123"

    config = DataverseConfig(organization_url="https://contoso.crm.dynamics.com")
    repository = DataverseMetadataRepository(
        config.create_client(transport=httpx.MockTransport(_explicit_handler)),
        flaky_token_provider,
    )
    sink = AuditLogger(AuditConfig(log_to_console=False))
    orchestrator = ValidationOrchestrator(repository, audit_sink=sink)

    result = await orchestrator.validate_async(
        ValidationRequest(entity_logical_names=["sic_a", "sic_b"], publisher_prefix="sic_")
    )
    await repository.aclose()

    assert [entity.logical_name for entity in result.entities] == ["sic_b"]
    assert sink.get_stats().successful == 1


async def test_token_failure_is_an_err() -> None:
    """The token error message is carried in the Err."""

    async def failing_token_provider() -> str:
        raise RuntimeError("token endpoint unavailable")

    config = DataverseConfig(organization_url="https://contoso.crm.dynamics.com")
    repository = DataverseMetadataRepository(
        config.create_client(transport=httpx.MockTransport(_explicit_handler)),
        failing_token_provider,
    )

    result = await repository.get_entity_descriptor("sic_a")

    assert isinstance(result, Err)
    assert "token endpoint unavailable" in result.message


async def test_non_object_bodies_are_errors() -> None:
    """JSON arrays, scalars and oddly shaped rows become Err values."""

    def handler(request: httpx.Request) -> httpx.Response:
        path = _path(request)
        if path == "solutions":
            return httpx.Response(200, json=["unexpected"])
        if path == "solutioncomponents":
            return httpx.Response(200, json={"value": ["m-1"]})
        if path.endswith("/Attributes"):
            return httpx.Response(200, json={"value": [{"LogicalName": "sic_a", "AttributeTypeName": "x"}]})
        if path.endswith("PicklistAttributeMetadata"):
            return httpx.Response(200, json=42)
        return httpx.Response(200, json={"LogicalName": "sic_a", "DisplayName": "Project"})

    repository = _repository(handler)

    solution = await repository.resolve_solution("core")
    components = await repository.list_entity_component_ids("s-1")
    entity = await repository.get_entity_descriptor("sic_a")
    attributes = await repository.list_attributes("sic_a")
    flag = await repository.get_option_set_global_flag("sic_a", "sic_status")

    for result in (solution, components, entity, attributes, flag):
        assert isinstance(result, Err)
        assert result.not_found is False
