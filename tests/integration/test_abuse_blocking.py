"""Integration tests for rejecting writes from blocked IPs, emails and domains."""

import logging
from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from prometheus_client import REGISTRY
from sqlalchemy import select
from sqlalchemy.orm import Session

from backend.app.api.errors import USEFUL_ERROR_MESSAGES
from backend.app.config import Settings
from backend.app.db.models import AuditLog, BlockedItem, Community, User

BLOCKED_IP = "198.51.100.7"


def blocked_count(item_type: str) -> float:
    return REGISTRY.get_sample_value("write_requests_blocked_total", {"item_type": item_type}) or 0.0


@pytest.fixture
def troll(community: Community, make_user, signed_in) -> User:
    user = make_user("troll", email="troll@spam.example")
    signed_in.user_id = user.id
    return user


def block(db: Session, item_type: str, value: str, expires: datetime | None = None) -> BlockedItem:
    item = BlockedItem(item_type=item_type, value=value, expires=expires)
    db.add(item)
    db.commit()
    return item


def audit_logs(db: Session) -> list[AuditLog]:
    db.expire_all()
    return list(db.execute(select(AuditLog)).scalars())


class TestBlockedWrites:
    """Write requests from blocked identities get a 418."""

    def test_get_from_blocked_ip_is_allowed(
        self, client: TestClient, db: Session, troll: User
    ) -> None:
        """Test blocked users can still read."""
        block(db, "ip", BLOCKED_IP)

        response = client.get("/test/context", headers={"X-Forwarded-For": BLOCKED_IP})

        assert response.status_code == 200
        assert audit_logs(db) == []

    def test_post_from_blocked_ip_is_rejected_and_audited(
        self, client: TestClient, db: Session, troll: User, community: Community
    ) -> None:
        """Test a blocked write renders the error page and writes one audit entry."""
        item = block(db, "ip", BLOCKED_IP)
        before = blocked_count("ip")

        response = client.post(
            "/test/posts?draft=1",
            data={"title": "Buy now", "password": "hunter2"},
            headers={"X-Forwarded-For": BLOCKED_IP},
        )

        assert response.status_code == 418
        assert "text/html" in response.headers["content-type"]
        assert "Something went wrong" in response.text

        logs = audit_logs(db)
        assert len(logs) == 1
        log = logs[0]
        assert log.log_type == "block_log"
        assert log.event_type == "write_request_blocked"
        assert log.related_type == "BlockedItem"
        assert log.related_id == item.id
        assert log.user_id == troll.id
        assert log.community_id == community.id
        assert f"ip: {BLOCKED_IP}" in log.comment
        assert "email: troll@spam.example" in log.comment
        assert "domain: spam.example" in log.comment
        assert "request: POST /test/posts?draft=1" in log.comment
        assert "  title: Buy now" in log.comment

        assert blocked_count("ip") == before + 1

    def test_filtered_params_are_left_out_of_the_audit_comment(
        self, client: TestClient, db: Session, troll: User
    ) -> None:
        """Test passwords and tokens never reach the audit log."""
        block(db, "ip", BLOCKED_IP)

        client.post(
            "/test/posts",
            data={"title": "Hi", "password": "hunter2", "authenticity_token": "abc"},
            headers={"X-Forwarded-For": BLOCKED_IP},
        )

        (log,) = audit_logs(db)
        assert "hunter2" not in log.comment
        assert "password" not in log.comment
        assert "authenticity_token" not in log.comment

    def test_json_request_gets_json_error(
        self, client: TestClient, db: Session, troll: User
    ) -> None:
        """Test JSON callers get a failed status with a generic message."""
        block(db, "ip", BLOCKED_IP)

        response = client.post(
            "/test/posts.json", json={"title": "Hi"}, headers={"X-Forwarded-For": BLOCKED_IP}
        )

        assert response.status_code == 418
        body = response.json()
        assert body["status"] == "failed"
        assert body["message"] in USEFUL_ERROR_MESSAGES

    def test_blocked_email_is_rejected(
        self, client: TestClient, db: Session, troll: User
    ) -> None:
        """Test an exact email block applies from any IP."""
        block(db, "email", "troll@spam.example")
        before = blocked_count("email")

        response = client.post("/test/posts", json={"title": "Hi"})

        assert response.status_code == 418
        assert blocked_count("email") == before + 1

    def test_blocked_email_domain_is_rejected(
        self, client: TestClient, db: Session, troll: User
    ) -> None:
        """Test an email_host block covers every address on the domain."""
        block(db, "email_host", "spam.example")

        response = client.post("/test/posts", json={"title": "Hi"})

        assert response.status_code == 418

    def test_first_matching_block_is_referenced(
        self, client: TestClient, db: Session, troll: User
    ) -> None:
        """Test the audit entry points at the lowest id among matching blocks."""
        first = block(db, "email_host", "spam.example")
        block(db, "ip", BLOCKED_IP)

        client.post("/test/posts", json={}, headers={"X-Forwarded-For": BLOCKED_IP})

        (log,) = audit_logs(db)
        assert log.related_id == first.id

    def test_blocked_write_is_logged(
        self,
        client: TestClient,
        db: Session,
        troll: User,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """Test a warning log line carries the structured payload."""
        block(db, "ip", BLOCKED_IP)

        with caplog.at_level(logging.WARNING, logger="backend.app.utils.logging"):
            client.post("/test/posts", json={}, headers={"X-Forwarded-For": BLOCKED_IP})

        records = [r for r in caplog.records if "Blocked write request" in r.getMessage()]
        assert len(records) == 1
        assert records[0].structured["ip"] == BLOCKED_IP
        assert records[0].structured["method"] == "POST"


class TestUnblockedWrites:
    """Writes that must pass through."""

    def test_expired_block_is_ignored(
        self, client: TestClient, db: Session, troll: User, an_hour_ago: datetime
    ) -> None:
        """Test blocks past their expiry no longer apply."""
        block(db, "ip", BLOCKED_IP, expires=an_hour_ago)

        response = client.post("/test/posts", json={}, headers={"X-Forwarded-For": BLOCKED_IP})

        assert response.status_code == 201
        assert audit_logs(db) == []

    def test_unexpired_block_applies(
        self, client: TestClient, db: Session, troll: User, in_an_hour: datetime
    ) -> None:
        """Test blocks with a future expiry still apply."""
        block(db, "ip", BLOCKED_IP, expires=in_an_hour)

        response = client.post("/test/posts", json={}, headers={"X-Forwarded-For": BLOCKED_IP})

        assert response.status_code == 418

    def test_anonymous_post_from_blocked_ip_passes(
        self, client: TestClient, db: Session, community: Community
    ) -> None:
        """Test only signed-in writes are screened."""
        block(db, "ip", BLOCKED_IP)

        response = client.post("/test/posts", json={}, headers={"X-Forwarded-For": BLOCKED_IP})

        assert response.status_code == 201

    def test_other_ip_passes(self, client: TestClient, db: Session, troll: User) -> None:
        """Test a block on one IP does not affect another."""
        block(db, "ip", BLOCKED_IP)

        response = client.post("/test/posts", json={}, headers={"X-Forwarded-For": "192.0.2.1"})

        assert response.status_code == 201

    def test_blocking_can_be_disabled(
        self,
        client: TestClient,
        db: Session,
        troll: User,
        test_settings: Settings,
    ) -> None:
        """Test the abuse_blocking_enabled setting turns the check off."""
        test_settings.abuse_blocking_enabled = False
        block(db, "ip", BLOCKED_IP)

        response = client.post("/test/posts", json={}, headers={"X-Forwarded-For": BLOCKED_IP})

        assert response.status_code == 201
        assert audit_logs(db) == []
