import uuid
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from app.core.errors import PersistenceError
from app.models.analysis import Prediction
from app.services.ai.vision.contracts import NormalizedAnalysis
from app.services.prediction_store import get_prediction, insert_prediction, list_predictions
from conftest import OTHER_USER_ID, TEST_USER_ID

ANALYSIS = NormalizedAnalysis(
    classification="benign",
    confidence_score=82,
    details={"classification": "benign", "confidence": 82},
    source="json",
)


def test_insert_returns_row_with_generated_id(db):
    row = insert_prediction(db, user_id=TEST_USER_ID, image_path="scan.png", analysis=ANALYSIS)

    assert isinstance(row.id, uuid.UUID)
    assert str(row.user_id) == TEST_USER_ID
    assert row.prediction_type == "benign"
    assert row.confidence_score == 82
    assert row.analysis_details == {"classification": "benign", "confidence": 82}
    assert row.created_at is not None
    assert db.query(Prediction).count() == 1


@pytest.mark.parametrize("user_id", [None, ""])
def test_insert_without_user_is_rejected(db, user_id):
    with pytest.raises(PersistenceError):
        insert_prediction(db, user_id=user_id, image_path="scan.png", analysis=ANALYSIS)
    assert db.query(Prediction).count() == 0


def test_database_failure_is_surfaced_and_rolled_back():
    session = MagicMock()
    session.commit.side_effect = OperationalError("INSERT INTO predictions", {}, Exception("db down"))

    with pytest.raises(PersistenceError) as excinfo:
        insert_prediction(session, user_id=TEST_USER_ID, image_path="scan.png", analysis=ANALYSIS)

    assert excinfo.value.status_code == 500
    session.rollback.assert_called_once()


def test_constraint_violation_is_surfaced(db):
    bad = NormalizedAnalysis(classification="suspicious", confidence_score=50, details={}, source="json")
    with pytest.raises(PersistenceError):
        insert_prediction(db, user_id=TEST_USER_ID, image_path="scan.png", analysis=bad)


def test_integrity_error_maps_to_persistence_error():
    session = MagicMock()
    session.commit.side_effect = IntegrityError("INSERT", {}, Exception("null value in user_id"))
    with pytest.raises(PersistenceError):
        insert_prediction(session, user_id=TEST_USER_ID, image_path="scan.png", analysis=ANALYSIS)


def test_list_is_scoped_to_user_and_newest_first(db):
    first = insert_prediction(db, user_id=TEST_USER_ID, image_path="a.png", analysis=ANALYSIS)
    second = insert_prediction(db, user_id=TEST_USER_ID, image_path="b.png", analysis=ANALYSIS)
    insert_prediction(db, user_id=OTHER_USER_ID, image_path="c.png", analysis=ANALYSIS)

    rows = list_predictions(db, user_id=TEST_USER_ID)
    assert [r.id for r in rows] == [second.id, first.id]


def test_list_respects_limit(db):
    for i in range(3):
        insert_prediction(db, user_id=TEST_USER_ID, image_path=f"{i}.png", analysis=ANALYSIS)
    assert len(list_predictions(db, user_id=TEST_USER_ID, limit=2)) == 2


def test_get_prediction_only_for_owner(db):
    row = insert_prediction(db, user_id=TEST_USER_ID, image_path="a.png", analysis=ANALYSIS)

    assert get_prediction(db, user_id=TEST_USER_ID, prediction_id=str(row.id)).id == row.id
    assert get_prediction(db, user_id=OTHER_USER_ID, prediction_id=str(row.id)) is None
    assert get_prediction(db, user_id=TEST_USER_ID, prediction_id="not-a-uuid") is None
    assert get_prediction(db, user_id=TEST_USER_ID, prediction_id=str(uuid.uuid4())) is None
