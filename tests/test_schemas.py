"""
Request schema validation tests.
"""

import pytest
from pydantic import ValidationError as PydanticValidationError

from provledger.api.schemas import (
    ActivityCreateRequest,
    AgentCreateRequest,
    EntityCreateRequest,
    EntityUpdateRequest,
    ErrorResponse,
    InvokeRequest,
    LinkRequest,
)


class TestCreateRequests:

    def test_valid_entity_request(self):
        request = EntityCreateRequest(id="patient1", nom="Dossier", description="Initial")
        assert request.id == "patient1"

    @pytest.mark.parametrize("model,extra", [
        (EntityCreateRequest, {"nom": "n", "description": "d"}),
        (AgentCreateRequest, {"nom": "n", "role": "r"}),
        (ActivityCreateRequest, {"description": "d", "timestamp": "2023-11-01T10:00:00Z"}),
    ])
    def test_empty_id_rejected(self, model, extra):
        with pytest.raises(PydanticValidationError) as exc_info:
            model(id="   ", **extra)
        assert "id cannot be empty" in str(exc_info.value)

    def test_activity_timestamp_not_parsed(self):
        request = ActivityCreateRequest(id="v1", description="d", timestamp="whenever")
        assert request.timestamp == "whenever"

    def test_link_requires_references(self):
        with pytest.raises(PydanticValidationError) as exc_info:
            LinkRequest(entity_id="patient1", agent_id="")
        assert "reference cannot be empty" in str(exc_info.value)


class TestOtherModels:

    def test_update_fields_optional(self):
        request = EntityUpdateRequest()
        assert request.nom is None
        assert request.description is None

    def test_invoke_args_default_empty(self):
        assert InvokeRequest().args == []

    def test_invoke_args_must_be_strings(self):
        with pytest.raises(PydanticValidationError):
            InvokeRequest(args=[{"nested": True}])

    def test_error_response_timestamped(self):
        response = ErrorResponse(error_type="NOT_FOUND", message="Record x does not exist", record_id="x")
        assert response.timestamp is not None
        assert response.record_id == "x"
