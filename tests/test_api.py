"""
HTTP surface: roasts, free tier, account balance and Stripe endpoints.
"""
import json
from unittest.mock import Mock, patch

import pytest
import stripe

from roast_api.errors.exceptions import AnalysisError
from roast_api.services import payment_service
from conftest import JOB_DESCRIPTION, RESUME

ROASTS = "/api/v1/roasts"


def roast_body(**extra):
    body = {"resume": RESUME, "job_description": JOB_DESCRIPTION}
    body.update(extra)
    return body


class TestCreateRoast:
    def test_guest_free_roast(self, client):
        response = client.post(ROASTS, json=roast_body(email="Jane@Example.com"))

        assert response.status_code == 201
        data = response.json()
        assert data["funded_by"] == "free_grant"
        assert data["remaining"] is None

        result = client.get(f"{ROASTS}/{data['id']}")
        assert result.status_code == 200
        assert result.json()["grade"] == "C-"
        assert result.json()["skill_gaps"] == ["Kubernetes", "Go"]

    def test_second_guest_roast_hits_paywall(self, client):
        client.post(ROASTS, json=roast_body(email="jane@example.com"))

        response = client.post(ROASTS, json=roast_body(email="  JANE@example.com"))

        assert response.status_code == 402
        data = response.json()
        assert data["needs_payment"] is True
        assert data["reason"] == "free_grant_already_used"
        assert data["code"] == 4023

    def test_anonymous_without_email_must_sign_in(self, client):
        response = client.post(ROASTS, json=roast_body())
        assert response.status_code == 401

    def test_account_spends_credits_then_paywall(self, client, auth_headers):
        headers = auth_headers("user_1", "jane@example.com")

        remaining = [
            client.post(ROASTS, json=roast_body(), headers=headers).json()["remaining"]
            for _ in range(3)
        ]
        assert remaining == [2, 1, 0]

        response = client.post(ROASTS, json=roast_body(), headers=headers)
        assert response.status_code == 402
        assert response.json()["reason"] == "no_credits_remaining"

    def test_invalid_token_falls_back_to_guest_email(self, client):
        headers = {"Authorization": "Bearer not-a-real-token"}

        response = client.post(ROASTS, json=roast_body(email="a@b.com"), headers=headers)

        assert response.status_code == 201
        assert response.json()["funded_by"] == "free_grant"

    def test_paid_session_funds_exactly_one_roast(self, client, db):
        payment_service.record(db, "cs_paid")

        first = client.post(ROASTS, json=roast_body(email="a@b.com", session_id="cs_paid"))
        second = client.post(ROASTS, json=roast_body(email="a@b.com", session_id="cs_paid"))

        assert first.status_code == 201
        assert first.json()["funded_by"] == "payment"
        assert second.status_code == 402
        assert second.json()["reason"] == "invalid_or_expired_session"

    def test_paid_session_needs_no_email_or_account(self, client, db):
        payment_service.record(db, "cs_anon")

        response = client.post(ROASTS, json=roast_body(session_id="cs_anon"))

        assert response.status_code == 201
        assert response.json()["funded_by"] == "payment"
        assert payment_service.is_valid(db, "cs_anon") is False

    def test_unknown_session_without_email_hits_paywall(self, client):
        response = client.post(ROASTS, json=roast_body(session_id="cs_nope"))

        assert response.status_code == 402
        assert response.json()["reason"] == "invalid_or_expired_session"

    def test_unknown_session_is_rejected(self, client):
        response = client.post(ROASTS, json=roast_body(email="a@b.com", session_id="cs_nope"))

        assert response.status_code == 402
        assert response.json()["reason"] == "invalid_or_expired_session"

    def test_analysis_failure_is_retryable_and_free(self, client, analyzer):
        analyzer.error = AnalysisError("bad JSON")

        response = client.post(ROASTS, json=roast_body(email="a@b.com"))

        assert response.status_code == 503
        assert response.headers["Retry-After"] == "5"
        check = client.post("/api/v1/free-tier/check", json={"email": "a@b.com"})
        assert check.json()["already_used"] is False

    def test_blank_resume_is_rejected(self, client):
        response = client.post(ROASTS, json=roast_body(resume="   ", email="a@b.com"))
        assert response.status_code == 422

    @pytest.mark.parametrize("email", ["not-an-email", "jane@@example.com", "a@b.com,c@d.com", "a@."])
    def test_invalid_email_is_rejected(self, client, email):
        response = client.post(ROASTS, json=roast_body(email=email))
        assert response.status_code == 422

    def test_unknown_result(self, client):
        assert client.get(f"{ROASTS}/doesnotexist").status_code == 404


class TestFreeTierEndpoints:
    def test_malformed_email_never_reaches_ledger(self, client):
        response = client.post("/api/v1/free-tier/mark", json={"email": "<x>@y.z"})

        assert response.status_code == 422
        assert response.json()["code"] == 4221

    def test_check_and_mark(self, client):
        assert client.post("/api/v1/free-tier/check", json={"email": "a@b.com"}).json()["already_used"] is False

        first = client.post("/api/v1/free-tier/mark", json={"email": "a@b.com", "result_id": "r1"})
        second = client.post("/api/v1/free-tier/mark", json={"email": "A@B.com ", "result_id": "r2"})

        assert first.json() == {"success": True, "already_used": False}
        assert second.json() == {"success": True, "already_used": True}

        status = client.post("/api/v1/free-tier/check", json={"email": "a@b.com"}).json()
        assert status["already_used"] is True
        assert status["result_id"] == "r1"
        assert status["used_at"] is not None


class TestMyEntitlement:
    def test_requires_account(self, client):
        assert client.get("/api/v1/users/me").status_code == 401

    def test_first_call_creates_allotment(self, client, auth_headers):
        response = client.get("/api/v1/users/me", headers=auth_headers("user_1", "jane@example.com"))

        assert response.status_code == 200
        data = response.json()
        assert data["principal_id"] == "user_1"
        assert data["roasts_remaining"] == 3
        assert data["plan"] == "free"
        assert data["needs_payment"] is False


class TestCheckout:
    @patch("roast_api.services.payment_service.stripe.checkout.Session.create")
    def test_guest_single_roast(self, mock_create, client):
        mock_create.return_value = Mock(id="cs_test_1", url="https://checkout.stripe.com/c/pay/cs_test_1")

        response = client.post("/api/v1/payment/checkout", json={"pack": "single", "email": "a@b.com"})

        assert response.status_code == 201
        assert response.json()["session_id"] == "cs_test_1"
        assert response.json()["amount"] == 700

    def test_pack_requires_account(self, client):
        response = client.post("/api/v1/payment/checkout", json={"pack": "starter"})
        assert response.status_code == 401

    @patch("roast_api.services.payment_service.stripe.checkout.Session.create")
    def test_provider_failure(self, mock_create, client):
        mock_create.side_effect = stripe.StripeError("down")

        response = client.post("/api/v1/payment/checkout", json={"pack": "single"})
        assert response.status_code == 502


class TestWebhook:
    def _post(self, client, event):
        return client.post(
            "/api/v1/payment/webhook",
            content=json.dumps(event),
            headers={"stripe-signature": "t=1,v1=sig", "Content-Type": "application/json"},
        )

    @patch("roast_api.services.payment_service.stripe.Webhook.construct_event")
    def test_completed_checkout_is_recorded_once(self, mock_construct, client, db):
        event = {
            "type": "checkout.session.completed",
            "data": {"object": {"id": "cs_hook", "payment_status": "paid", "amount_total": 700, "currency": "usd"}},
        }

        first = self._post(client, event)
        second = self._post(client, event)

        assert first.json()["recorded"] is True
        assert second.json()["recorded"] is False
        assert payment_service.is_valid(db, "cs_hook") is True

    @patch("roast_api.services.payment_service.stripe.Webhook.construct_event")
    def test_pack_purchase_credits_account(self, mock_construct, client, auth_headers):
        headers = auth_headers("user_1")
        client.get("/api/v1/users/me", headers=headers)
        event = {
            "type": "checkout.session.completed",
            "data": {"object": {
                "id": "cs_pack",
                "payment_status": "paid",
                "amount_total": 1500,
                "metadata": {"pack": "pro", "principal_id": "user_1"},
            }},
        }

        self._post(client, event)
        self._post(client, event)

        me = client.get("/api/v1/users/me", headers=headers).json()
        assert me["roasts_remaining"] == 53
        assert me["plan"] == "pro"

    @patch("roast_api.services.payment_service.stripe.Webhook.construct_event")
    def test_other_events_are_acknowledged(self, mock_construct, client):
        response = self._post(client, {"type": "payment_intent.created", "data": {"object": {}}})

        assert response.status_code == 200
        assert response.json()["recorded"] is False

    @patch("roast_api.services.payment_service.stripe.Webhook.construct_event")
    def test_bad_signature(self, mock_construct, client):
        mock_construct.side_effect = stripe.SignatureVerificationError("bad", "t=1,v1=sig")

        response = self._post(client, {"type": "checkout.session.completed"})
        assert response.status_code == 400


def test_health(client):
    assert client.get("/health").json()["status"] == "ok"
