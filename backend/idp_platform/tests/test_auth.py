import json

import jwt
from django.test import TestCase, override_settings

from .fixtures import ADMIN_HEADERS, ApiClientMixin, USER_HEADERS


class ProxyHeaderAuthTests(ApiClientMixin, TestCase):
    def test_no_headers_is_unauthenticated(self):
        response = self.get_json("/user/me", headers={})
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json(), {"error": "not authenticated"})

    def test_email_names_the_principal(self):
        body = self.get_json("/user/me", headers=USER_HEADERS).json()
        self.assertEqual(body["name"], "alice@example.com")
        self.assertTrue(body["authenticated"])
        self.assertEqual(body["email"], "alice@example.com")
        self.assertEqual(body["roles"], ["user"])

    def test_preferred_username_wins(self):
        headers = {**USER_HEADERS, "HTTP_X_AUTH_REQUEST_PREFERRED_USERNAME": "alice.p"}
        body = self.get_json("/user/me", headers=headers).json()
        self.assertEqual(body["name"], "alice.p")
        self.assertEqual(body["preferredUsername"], "alice.p")

    def test_admin_group_grants_admin_role(self):
        body = self.get_json("/user/me", headers=ADMIN_HEADERS).json()
        self.assertEqual(body["roles"], ["user", "admin"])

    @override_settings(IDP_ADMIN_GROUP="platform-admins")
    def test_admin_group_is_configurable(self):
        body = self.get_json("/user/me", headers=ADMIN_HEADERS).json()
        self.assertEqual(body["roles"], ["user"])

    def test_forwarded_headers_are_a_fallback(self):
        headers = {"HTTP_X_FORWARDED_USER": "erin", "HTTP_X_FORWARDED_GROUPS": "ops, admins"}
        body = self.get_json("/user/me", headers=headers).json()
        self.assertEqual(body["name"], "erin")
        self.assertIsNone(body["email"])
        self.assertIn("admin", body["roles"])

    def test_user_info_echoes_forwarded_headers(self):
        body = self.get_json("/user/info", headers=USER_HEADERS).json()
        self.assertEqual(body["principal"], "alice@example.com")
        self.assertEqual(body["authMechanism"], "proxy_headers")
        self.assertEqual(body["headers"]["X-Auth-Request-Email"], "alice@example.com")
        self.assertIsNone(body["headers"]["X-Auth-Request-Preferred-Username"])

    def test_auth_headers_is_public_and_masks_credentials(self):
        anonymous = self.get_json("/auth/headers", headers={})
        self.assertEqual(anonymous.status_code, 200)
        self.assertEqual(anonymous.json(), {"headers": {}, "principal": None})

        headers = {**USER_HEADERS, "HTTP_AUTHORIZATION": "Bearer secret-token"}
        body = self.get_json("/auth/headers", headers=headers).json()
        self.assertEqual(body["headers"]["Authorization"], "<present>")
        self.assertEqual(body["headers"]["X-Auth-Request-User"], "alice")
        self.assertEqual(body["principal"], "alice@example.com")


@override_settings(IDP_ENTRA_ID_ENABLED=True, IDP_ENTRA_ID_ADMIN_GROUP_ID="4f2a-admins")
class ClaimsAuthTests(ApiClientMixin, TestCase):
    def _token(self, **claims):
        return jwt.encode(claims, "unused-signing-key", algorithm="HS256")

    def test_bearer_jwt_claims(self):
        token = self._token(
            preferred_username="carol@example.com",
            email="carol@example.com",
            name="Carol",
            groups=["4f2a-admins"],
            roles=["Reader"],
        )
        body = self.get_json("/user/me", headers={"HTTP_AUTHORIZATION": f"Bearer {token}"}).json()
        self.assertEqual(body["name"], "carol@example.com")
        self.assertEqual(body["displayName"], "Carol")
        self.assertEqual(body["roles"], ["user", "admin", "reader"])

    def test_name_falls_back_to_subject(self):
        token = self._token(sub="0c7d")
        body = self.get_json("/user/me", headers={"HTTP_AUTHORIZATION": f"Bearer {token}"}).json()
        self.assertEqual(body["name"], "0c7d")
        self.assertEqual(body["roles"], ["user"])

    def test_lambda_authorizer_context(self):
        context = {"requestContext": {"authorizer": {"jwt": {"claims": {"upn": "dave@example.com"}}}}}
        response = self.get_json("/user/me", headers={"HTTP_X_AMZN_REQUEST_CONTEXT": json.dumps(context)})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["name"], "dave@example.com")

    def test_non_object_authorizer_context_falls_through(self):
        for context in ({"requestContext": "oops"}, {"requestContext": {"authorizer": ["x"]}}, [1, 2]):
            response = self.get_json("/user/me", headers={"HTTP_X_AMZN_REQUEST_CONTEXT": json.dumps(context)})
            self.assertEqual(response.status_code, 401, context)

        token = self._token(preferred_username="carol@example.com")
        headers = {
            "HTTP_X_AMZN_REQUEST_CONTEXT": json.dumps({"requestContext": {"authorizer": {"jwt": "x"}}}),
            "HTTP_AUTHORIZATION": f"Bearer {token}",
        }
        self.assertEqual(self.get_json("/user/me", headers=headers).json()["name"], "carol@example.com")

    def test_undecodable_token_is_unauthenticated(self):
        response = self.get_json("/user/me", headers={"HTTP_AUTHORIZATION": "Bearer not-a-jwt"})
        self.assertEqual(response.status_code, 401)

    def test_proxy_headers_take_priority(self):
        token = self._token(preferred_username="carol@example.com")
        headers = {**USER_HEADERS, "HTTP_AUTHORIZATION": f"Bearer {token}"}
        self.assertEqual(self.get_json("/user/me", headers=headers).json()["name"], "alice@example.com")


class ClaimsDisabledTests(ApiClientMixin, TestCase):
    def test_jwt_ignored_when_claims_auth_disabled(self):
        token = jwt.encode({"preferred_username": "carol@example.com"}, "unused-signing-key", algorithm="HS256")
        response = self.get_json("/user/me", headers={"HTTP_AUTHORIZATION": f"Bearer {token}"})
        self.assertEqual(response.status_code, 401)
