"""Tests for the generic (all-settle) apply path; storage handler mocked."""
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from sqlalchemy.exc import IntegrityError

from leasetrack.apply.config import ApplyConfig
from leasetrack.apply.context import BatchRunContext
from leasetrack.apply.generic import ItemFailure, process_group, process_single_suggestion
from leasetrack.services.project_access import ProjectAccessResult
from leasetrack.services.suggestions import UpdateSuggestion


class FkError(Exception):
    sqlstate = "23503"


def _ctx(session_factory, validator, total=1, **config):
    return BatchRunContext(
        session_factory=session_factory,
        validator=validator,
        config=ApplyConfig(**config),
        total=total,
    )


def _update(sid="s1", entity_id="prop-1", values=None, entity_type="property", name="Tower One"):
    return UpdateSuggestion(
        id=sid,
        entity_type=entity_type,
        action="update",
        entity_id=entity_id,
        entity_name=name,
        values=values if values is not None else {"total_sqft": "12000", "status": "Under Review"},
    )


@pytest.mark.asyncio
async def test_update_writes_coerced_payload(session_factory, open_validator):
    ctx = _ctx(session_factory, open_validator)
    with patch("leasetrack.apply.generic.db_handler") as mock_db:
        mock_db.update_row = AsyncMock(return_value=1)
        await process_group(ctx, [_update()])

    mock_db.update_row.assert_awaited_once()
    db, entity_type, entity_id, payload = mock_db.update_row.await_args.args
    assert db is session_factory.db
    assert (entity_type, entity_id) == ("property", "prop-1")
    assert payload["total_sqft"] == 12000.0
    assert payload["status"] == "under_review"
    assert isinstance(payload["updated_at"], datetime)
    assert "created_at" not in payload
    assert ctx.result().as_dict() == {
        "success": True, "processed_count": 1, "failed_count": 0, "errors": [],
    }


@pytest.mark.asyncio
async def test_update_matching_no_rows_still_counts(session_factory, open_validator):
    ctx = _ctx(session_factory, open_validator)
    with patch("leasetrack.apply.generic.db_handler") as mock_db:
        mock_db.update_row = AsyncMock(return_value=0)
        await process_group(ctx, [_update()])
    assert ctx.processed_count == 1
    assert ctx.failed_count == 0


@pytest.mark.asyncio
async def test_update_without_entity_id_fails(session_factory, open_validator):
    ctx = _ctx(session_factory, open_validator)
    with patch("leasetrack.apply.generic.db_handler") as mock_db:
        await process_group(ctx, [_update(entity_id=None)])
    mock_db.update_row.assert_not_called()
    assert ctx.errors == ['Failed to update property "Tower One": Missing entity ID for update']


@pytest.mark.asyncio
async def test_invalid_insert_never_reaches_storage(session_factory, open_validator):
    ctx = _ctx(session_factory, open_validator)
    suggestion = UpdateSuggestion(
        id="s1", entity_type="project", action="insert", entity_name="HQ Search", values={"status": "Active"}
    )
    with patch("leasetrack.apply.generic.db_handler") as mock_db:
        await process_group(ctx, [suggestion])
    mock_db.insert_rows.assert_not_called()
    assert ctx.errors == [
        'Failed to insert project "HQ Search": Validation failed: '
        "Missing required field: title, Project must have a title or name"
    ]


@pytest.mark.asyncio
async def test_inaccessible_project_fails_validation(session_factory):
    validator = MagicMock()
    validator.validate_many = AsyncMock(return_value={
        "p1": ProjectAccessResult(is_valid=False, exists=False, has_access=False, error="Project not found"),
    })
    ctx = _ctx(session_factory, validator)
    suggestion = UpdateSuggestion(
        id="s1",
        entity_type="client_requirement",
        action="insert",
        entity_name="Parking",
        values={"project_id": "p1", "category": "Parking", "requirement_text": "Two stalls per 1,000 sf"},
    )
    with patch("leasetrack.apply.generic.db_handler") as mock_db:
        await process_group(ctx, [suggestion])
    mock_db.insert_rows.assert_not_called()
    assert ctx.errors == [
        'Failed to insert client_requirement "Parking": Validation failed: Project p1: Project not found'
    ]


@pytest.mark.asyncio
async def test_insert_storage_error_is_categorised(session_factory, open_validator):
    ctx = _ctx(session_factory, open_validator)
    suggestion = UpdateSuggestion(
        id="s1",
        entity_type="client_requirement",
        action="insert",
        entity_name="Parking",
        values={"project_id": "p1", "category": "Parking", "requirement_text": "Two stalls per 1,000 sf"},
    )
    fk = IntegrityError("INSERT", {}, FkError("violates foreign key constraint"))
    with patch("leasetrack.apply.generic.db_handler") as mock_db:
        mock_db.insert_rows = AsyncMock(side_effect=fk)
        await process_group(ctx, [suggestion])
    assert ctx.failed_count == 1
    assert ctx.errors == [
        'Failed to insert client_requirement "Parking": '
        "Invalid reference: The specified project does not exist or is not accessible"
    ]


@pytest.mark.asyncio
async def test_one_failure_does_not_block_siblings(session_factory, open_validator):
    ctx = _ctx(session_factory, open_validator, total=3)
    suggestions = [_update(sid=f"s{i}", entity_id=f"prop-{i}", name=f"Bldg {i}") for i in range(1, 4)]

    async def update_row(db, entity_type, entity_id, values):
        if entity_id == "prop-2":
            raise RuntimeError("deadlock detected")
        return 1

    with patch("leasetrack.apply.generic.db_handler") as mock_db:
        mock_db.update_row = AsyncMock(side_effect=update_row)
        await process_group(ctx, suggestions)

    assert mock_db.update_row.await_count == 3
    assert session_factory.opened == 3
    result = ctx.result()
    assert result.success is False
    assert (result.processed_count, result.failed_count) == (2, 1)
    assert result.errors == ['Failed to update property "Bldg 2": deadlock detected']


@pytest.mark.asyncio
async def test_strict_mode_rejects_unmatched_enum(session_factory, open_validator):
    ctx = _ctx(session_factory, open_validator, strict_enums=True)
    with patch("leasetrack.apply.generic.db_handler") as mock_db:
        await process_group(ctx, [_update(values={"status": "archived"})])
    mock_db.update_row.assert_not_called()
    assert ctx.errors[0].startswith(
        'Failed to update property "Tower One": Validation failed: Invalid status: archived.'
    )


@pytest.mark.asyncio
async def test_lenient_mode_nulls_unmatched_enum(session_factory, open_validator):
    ctx = _ctx(session_factory, open_validator)
    with patch("leasetrack.apply.generic.db_handler") as mock_db:
        mock_db.update_row = AsyncMock(return_value=1)
        await process_single_suggestion(ctx, _update(values={"status": "archived"}))
    assert mock_db.update_row.await_args.args[3]["status"] is None


@pytest.mark.asyncio
async def test_process_single_suggestion_raises_item_failure(session_factory, open_validator):
    ctx = _ctx(session_factory, open_validator)
    with pytest.raises(ItemFailure, match="Missing entity ID for update"):
        await process_single_suggestion(ctx, _update(entity_id=None))


@pytest.mark.asyncio
async def test_update_with_no_fields_fails_readably(session_factory, open_validator):
    ctx = _ctx(session_factory, open_validator)
    suggestion = _update(entity_type="client_requirement", entity_id="req-1", values={}, name="Parking")
    with patch("leasetrack.apply.generic.db_handler") as mock_db:
        await process_group(ctx, [suggestion])
    mock_db.update_row.assert_not_called()
    assert ctx.errors == ['Failed to update client_requirement "Parking": No fields to update']
