import json

from django.test import TestCase, override_settings

from idp_platform.models import Team


@override_settings(IDP_DEMO_MODE=True)
class DemoModeMiddlewareTests(TestCase):
    def test_demo_principal_without_headers(self):
        response = self.client.get("/api/v1/user/me")
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["name"], "demo")
        self.assertEqual(body["email"], "demo@visuidp.example")
        self.assertEqual(body["displayName"], "Demo User")
        self.assertEqual(body["roles"], ["user", "admin"])

    def test_writes_are_echoed_without_persisting(self):
        response = self.client.post(
            "/api/v1/teams", data=json.dumps({"name": "Payments"}), content_type="application/json"
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json(), {"name": "Payments"})
        self.assertFalse(Team.objects.exists())

        updated = self.client.put(
            "/api/v1/admin/cloud-providers/00000000-0000-0000-0000-000000000001",
            data=json.dumps({"displayName": "AWS"}),
            content_type="application/json",
        )
        self.assertEqual(updated.status_code, 200)
        self.assertEqual(updated.json(), {"displayName": "AWS"})

    def test_delete_returns_no_content(self):
        response = self.client.delete("/api/v1/stacks/00000000-0000-0000-0000-000000000001")
        self.assertEqual(response.status_code, 204)

    def test_reads_reach_the_views(self):
        Team.objects.create(name="Payments")
        response = self.client.get("/api/v1/teams")
        self.assertEqual(response.status_code, 200)
        self.assertEqual([team["name"] for team in response.json()], ["Payments"])


class PrincipalMiddlewareTests(TestCase):
    def test_principal_not_resolved_outside_api(self):
        response = self.client.get("/api/v1/stack-types", HTTP_X_AUTH_REQUEST_USER="alice")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.wsgi_request.principal.name, "alice")

        other = self.client.get("/status", HTTP_X_AUTH_REQUEST_USER="alice")
        self.assertIsNone(other.wsgi_request.principal)

    def test_unsafe_requests_skip_csrf_for_resolved_principals(self):
        client = self.client_class(enforce_csrf_checks=True)
        response = client.post(
            "/api/v1/teams",
            data=json.dumps({"name": "Payments"}),
            content_type="application/json",
            HTTP_X_AUTH_REQUEST_EMAIL="alice@example.com",
        )
        self.assertEqual(response.status_code, 201, response.content.decode())
