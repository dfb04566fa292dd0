"""test_layer.py — Unit tests for leads_shared layer modules.

Run from the repository root:
    python3 -m pytest backend/lambda/shared_layer/test_layer.py -v
"""

from __future__ import annotations

import base64
import json
import os
import sys
import unittest
from unittest.mock import MagicMock, patch

import jwt

# Ensure the layer's python/ directory is importable.
sys.path.insert(0, os.path.join(os.path.dirname(os.path.abspath(__file__)), "python"))

from leads_shared.errors import ClaimMissing, IdentityError, TokenMalformed, TokenMissing, ValidationFailed
from leads_shared.http_utils import (
    _envelope_error,
    _header,
    _path_method,
    _raw_body,
    _response,
    _result_response,
)
from leads_shared.identity import (
    Claims,
    authorizer_claims,
    decode_claims,
    extract_email,
    extract_tenant_id,
    resolve_email,
    resolve_tenant_id,
    strip_bearer,
)
from leads_shared.models import ErrorDetails, Lead, LeadInput, OperationResult
from leads_shared.serialization import _deserialize, _item_to_lead, _lead_to_item, _now_z, _serialize

SECRET = "unit-test-signing-secret-not-verified-0123456789"


def _token(claims):
    return jwt.encode(claims, SECRET, algorithm="HS256")


def _b64(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode().rstrip("=")


class IdentityTests(unittest.TestCase):
    def test_sub_claim_with_bearer_prefix(self):
        self.assertEqual(extract_tenant_id("Bearer " + _token({"sub": "user-123"})), "user-123")

    def test_without_bearer_prefix(self):
        self.assertEqual(extract_tenant_id(_token({"sub": "user-123"})), "user-123")

    def test_bearer_prefix_case_insensitive(self):
        self.assertEqual(extract_tenant_id("bearer " + _token({"sub": "u1"})), "u1")

    def test_cognito_username_fallback(self):
        token = _token({"cognito:username": "jane"})
        self.assertEqual(extract_tenant_id(token), "jane")

    def test_blank_sub_falls_back_to_username(self):
        token = _token({"sub": "  ", "cognito:username": "jane"})
        self.assertEqual(extract_tenant_id(token), "jane")

    def test_prefers_sub_over_username(self):
        token = _token({"sub": "sub-id", "cognito:username": "jane"})
        self.assertEqual(extract_tenant_id(token), "sub-id")

    def test_missing_header(self):
        for raw in (None, "", "   ", "Bearer ", "Bearer    "):
            with self.assertRaises(TokenMissing):
                extract_tenant_id(raw)

    def test_wrong_segment_count(self):
        for raw in ("not-a-jwt", "a.b", "a.b.c.d"):
            with self.assertRaises(TokenMalformed):
                decode_claims(raw)

    def test_undecodable_segments(self):
        header = _b64(b'{"alg":"none","typ":"JWT"}')
        cases = [
            "header.payload.sig",
            f"{header}.{_b64(b'not json')}.sig",
            f"{header}.{_b64(b'[1, 2, 3]')}.sig",
        ]
        for raw in cases:
            with self.assertRaises(TokenMalformed, msg=raw):
                decode_claims(raw)

    def test_signature_is_not_checked(self):
        token = _token({"sub": "user-1"})
        header, payload, _sig = token.split(".")
        self.assertEqual(extract_tenant_id(f"{header}.{payload}.forged"), "user-1")

    def test_signature_segment_is_never_decoded(self):
        header, payload, _sig = _token({"sub": "user-1"}).split(".")
        for sig in ("x", "abc", "!!not base64!!", ""):
            self.assertEqual(extract_tenant_id(f"Bearer {header}.{payload}.{sig}"), "user-1", sig)

    def test_header_segment_is_not_decoded(self):
        _header_seg, payload, sig = _token({"sub": "user-1"}).split(".")
        self.assertEqual(extract_tenant_id(f"garbage.{payload}.{sig}"), "user-1")

    def test_missing_tenant_claim(self):
        with self.assertRaises(ClaimMissing):
            extract_tenant_id(_token({"email": "a@b.com"}))

    def test_email_claim(self):
        self.assertEqual(extract_email(_token({"sub": "u1", "email": "a@b.com"})), "a@b.com")

    def test_missing_email_claim(self):
        with self.assertRaises(ClaimMissing):
            extract_email(_token({"sub": "u1"}))

    def test_identity_errors_share_public_code(self):
        for exc in (TokenMissing(), TokenMalformed("x"), ClaimMissing("y")):
            self.assertIsInstance(exc, IdentityError)
            self.assertIsInstance(exc, ValueError)
            self.assertEqual(exc.code, "AUTH_TOKEN_MISSING")
            self.assertEqual(exc.message, "Valid authorization token is required")

    def test_claims_lookup_is_typed(self):
        claims = Claims({"sub": "u1", "n": 42, "flag": True, "nested": {"a": 1}, "blank": ""})
        self.assertEqual(claims.get("sub"), "u1")
        self.assertEqual(claims.get("n"), "42")
        self.assertIsNone(claims.get("flag"))
        self.assertIsNone(claims.get("nested"))
        self.assertIsNone(claims.get("blank"))
        self.assertIsNone(claims.get("absent"))
        self.assertIn("sub", claims)
        self.assertNotIn("blank", claims)

    def test_authorizer_claims_rest_api(self):
        event = {"requestContext": {"authorizer": {"claims": {"sub": "u1", "email": "a@b.com"}}}}
        claims = authorizer_claims(event)
        self.assertEqual(claims.get("sub"), "u1")
        self.assertEqual(claims.get("email"), "a@b.com")

    def test_authorizer_claims_http_api_jwt(self):
        event = {"requestContext": {"authorizer": {"jwt": {"claims": {"cognito:username": "jane"}}}}}
        self.assertEqual(authorizer_claims(event).get("cognito:username"), "jane")

    def test_authorizer_claims_absent(self):
        events = [
            {},
            {"requestContext": None},
            {"requestContext": {"authorizer": {"claims": {}}}},
            {"requestContext": {"authorizer": {"principalId": "x"}}},
        ]
        for event in events:
            self.assertIsNone(authorizer_claims(event), event)

    def test_resolve_prefers_authorizer_claims(self):
        context = Claims({"sub": "from-authorizer", "email": "ctx@b.com"})
        token = _token({"sub": "from-token", "email": "tok@b.com"})
        self.assertEqual(resolve_tenant_id(token, context), "from-authorizer")
        self.assertEqual(resolve_email(token, context), "ctx@b.com")
        self.assertEqual(resolve_tenant_id("opaque-access-token", context), "from-authorizer")

    def test_resolve_username_from_authorizer_claims(self):
        self.assertEqual(resolve_tenant_id(None, Claims({"cognito:username": "jane"})), "jane")

    def test_resolve_falls_back_to_token(self):
        token = _token({"sub": "from-token", "email": "tok@b.com"})
        context = Claims({"scope": "openid"})
        self.assertEqual(resolve_tenant_id(token, context), "from-token")
        self.assertEqual(resolve_email(token, context), "tok@b.com")
        self.assertEqual(resolve_tenant_id(token), "from-token")

    def test_resolve_without_any_source(self):
        with self.assertRaises(TokenMissing):
            resolve_tenant_id(None, Claims({"scope": "openid"}))
        with self.assertRaises(TokenMalformed):
            resolve_email("opaque-access-token", Claims({"sub": "u1"}))

    def test_strip_bearer(self):
        self.assertEqual(strip_bearer("  Bearer abc  "), "abc")
        self.assertEqual(strip_bearer("abc"), "abc")
        self.assertEqual(strip_bearer(None), "")


class ModelTests(unittest.TestCase):
    def test_lead_input_ignores_ownership_fields(self):
        data = LeadInput.from_body({"name": "Jane", "tenantId": "evil", "recordId": "x"})
        self.assertEqual(data.name, "Jane")
        self.assertFalse(hasattr(data, "tenant_id"))

    def test_lead_input_rejects_non_string(self):
        with self.assertRaises(ValidationFailed) as ctx:
            LeadInput.from_body({"name": "Jane", "phone": 5551234})
        self.assertEqual(ctx.exception.details, {"phone": "must be a string"})

    def test_validate_name(self):
        for name in (None, "", "   ", "\t\n"):
            with self.assertRaises(ValidationFailed):
                LeadInput(name=name).validate()
        self.assertEqual(LeadInput(name=" Jane ").validate().name, " Jane ")

    def test_lead_dict_round_trip(self):
        lead = Lead(
            tenant_id="u1",
            record_id="r1",
            name="Jane",
            company="Tech Corp",
            created_at="2026-01-01T00:00:00.000000Z",
            updated_at="2026-01-01T00:00:00.000000Z",
        )
        self.assertEqual(Lead.from_dict(lead.to_dict()), lead)
        self.assertIsNone(lead.to_dict()["title"])

    def test_envelope_never_mixes_data_and_error(self):
        result = OperationResult(data={"x": 1}, error=ErrorDetails("INTERNAL_ERROR", "boom"))
        envelope = result.to_envelope()
        self.assertFalse(envelope["success"])
        self.assertIsNone(envelope["data"])
        self.assertEqual(envelope["error"], {"code": "INTERNAL_ERROR", "message": "boom"})


class HttpUtilsTests(unittest.TestCase):
    def test_response_format(self):
        resp = _response(200, {"key": "val"})
        self.assertEqual(resp["statusCode"], 200)
        self.assertEqual(resp["headers"]["Content-Type"], "application/json")
        self.assertIn("Access-Control-Allow-Origin", resp["headers"])
        self.assertEqual(json.loads(resp["body"]), {"key": "val"})

    def test_result_response_status_mapping(self):
        cases = {
            "AUTH_TOKEN_MISSING": 401,
            "VALIDATION_FAILED": 400,
            "RESOURCE_NOT_FOUND": 404,
            "AUTH_UNAUTHORIZED": 403,
            "INTERNAL_ERROR": 500,
        }
        for code, status in cases.items():
            resp = _result_response(OperationResult(error=ErrorDetails(code, "m")), 201)
            self.assertEqual(resp["statusCode"], status, code)

    def test_result_response_success(self):
        resp = _result_response(OperationResult(data={"a": 1}), 201)
        self.assertEqual(resp["statusCode"], 201)
        self.assertEqual(json.loads(resp["body"]), {"success": True, "data": {"a": 1}, "error": None})

    def test_envelope_error(self):
        resp = _envelope_error("AUTH_TOKEN_MISSING", "Valid authorization token is required")
        self.assertEqual(resp["statusCode"], 401)
        body = json.loads(resp["body"])
        self.assertFalse(body["success"])
        self.assertIsNone(body["data"])
        self.assertEqual(body["error"]["code"], "AUTH_TOKEN_MISSING")

    def test_header_case_insensitive(self):
        self.assertEqual(_header({"headers": {"authorization": "Bearer x"}}, "Authorization"), "Bearer x")
        self.assertEqual(
            _header({"multiValueHeaders": {"Authorization": ["Bearer y"]}}, "authorization"),
            "Bearer y",
        )
        self.assertIsNone(_header({"headers": None}, "Authorization"))

    def test_raw_body_base64(self):
        raw = base64.b64encode(b'{"name": "b64"}').decode()
        self.assertEqual(_raw_body({"body": raw, "isBase64Encoded": True}), '{"name": "b64"}')
        self.assertIsNone(_raw_body({}))

    def test_path_method_rest_and_http_api(self):
        self.assertEqual(_path_method({"httpMethod": "put", "path": "/leads/1"}), ("PUT", "/leads/1"))
        event = {"requestContext": {"http": {"method": "DELETE", "path": "/leads/2"}}, "rawPath": "/leads/2"}
        self.assertEqual(_path_method(event), ("DELETE", "/leads/2"))


class SerializationTests(unittest.TestCase):
    def test_serialize_string(self):
        self.assertEqual(_serialize("hello"), {"S": "hello"})

    def test_deserialize_item(self):
        item = {"name": {"S": "test"}, "email": {"S": "a@b.com"}}
        self.assertEqual(_deserialize(item), {"name": "test", "email": "a@b.com"})

    def test_lead_item_omits_none(self):
        lead = Lead(tenant_id="u1", record_id="r1", name="", email="a@b.com", created_at="t", updated_at="t")
        item = _lead_to_item(lead)
        self.assertEqual(item["tenantId"], {"S": "u1"})
        self.assertEqual(item["name"], {"S": ""})
        self.assertNotIn("title", item)
        self.assertEqual(_item_to_lead(item), lead)

    def test_now_z_format(self):
        ts = _now_z()
        self.assertRegex(ts, r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{6}Z$")


class AwsClientTests(unittest.TestCase):
    @patch("leads_shared.aws_clients.boto3")
    def test_new_ddb_client(self, mock_boto3):
        from leads_shared.aws_clients import _new_ddb_client

        mock_client = MagicMock()
        mock_boto3.client.return_value = mock_client

        self.assertIs(_new_ddb_client(region="eu-west-1"), mock_client)
        args, kwargs = mock_boto3.client.call_args
        self.assertEqual(args, ("dynamodb",))
        self.assertEqual(kwargs["region_name"], "eu-west-1")


if __name__ == "__main__":
    unittest.main()
