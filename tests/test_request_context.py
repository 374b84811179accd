import logging
import unittest
from types import SimpleNamespace

from fastapi import HTTPException
from pydantic import ValidationError

from app.api.dependencies import get_request_context as dependency_context
from app.api.dependencies import require_session_context, require_tenant_api_context
from app.core.access_policy import dashboard_path_for
from app.core.logging import RequestContextFilter
from app.core.tenant_context import clear_request_context, get_request_context, set_request_context
from app.schemas.access import RequestContext, RouteDecision
from app.schemas.session import Session
from app.schemas.tenant import Tenant, TenantResolution, TenantStatus
from app.services.context_injector import inject
from app.utils.ttl_cache import TTLCache

ACME = Tenant(id="t-acme", key="acme", status=TenantStatus.ACTIVE)
TEACHER = Session(user_id="u-1", email="t@acme.test", roles=frozenset({"TEACHER", "STUDENT"}), tenant_id="t-acme")
ROOT = Session(user_id="u-root", email="root@test", roles=frozenset({"SUPER_ADMIN"}))


class TestContextInjector(unittest.TestCase):

    def test_institute_member(self):
        context = inject(RouteDecision.allow(), TenantResolution.found(ACME), TEACHER)
        self.assertEqual(context.tenant_id, "t-acme")
        self.assertEqual(context.tenant_key, "acme")
        self.assertEqual(context.tenant_status, "active")
        self.assertEqual(context.user_id, "u-1")
        self.assertEqual(context.roles, ("STUDENT", "TEACHER"))

    def test_platform_request(self):
        context = inject(RouteDecision.allow(), TenantResolution.platform(), ROOT)
        self.assertTrue(context.is_platform)
        self.assertEqual(context.to_headers()[0], ("x-user-id", "u-root"))

    def test_anonymous(self):
        context = inject(RouteDecision.allow(), TenantResolution.found(ACME), None)
        self.assertFalse(context.is_authenticated)
        self.assertEqual([name for name, _ in context.to_headers()],
                         ["x-institute-id", "x-institute-subdomain", "x-institute-status"])

    def test_refuses_redirect_decisions(self):
        for decision in (RouteDecision.redirect_login("/admin"), RouteDecision.redirect_unauthorized()):
            with self.assertRaises(ValueError):
                inject(decision, TenantResolution.found(ACME), TEACHER)


class TestRequestContext(unittest.TestCase):

    def test_headers_are_percent_encoded(self):
        session = Session(user_id="u-2", email="学生@acme.test", roles=frozenset({"STUDENT"}), tenant_id="t-acme")
        headers = dict(inject(RouteDecision.allow(), TenantResolution.found(ACME), session).to_headers())
        self.assertEqual(headers["x-user-email"], "%E5%AD%A6%E7%94%9F@acme.test")
        self.assertEqual(headers["x-user-roles"], "STUDENT")
        for value in headers.values():
            value.encode("ascii")

    def test_plain_values_unchanged(self):
        headers = dict(inject(RouteDecision.allow(), TenantResolution.found(ACME), TEACHER).to_headers())
        self.assertEqual(headers["x-user-email"], "t@acme.test")
        self.assertEqual(headers["x-user-roles"], "STUDENT,TEACHER")

    def test_empty_context(self):
        context = RequestContext()
        self.assertFalse(context.is_authenticated)
        self.assertTrue(context.is_platform)
        self.assertEqual(context.roles, ())
        self.assertEqual(context.to_headers(), [])


class TestTenantContext(unittest.IsolatedAsyncioTestCase):

    def tearDown(self):
        clear_request_context()

    async def test_set_and_clear(self):
        context = RequestContext(tenant_id="t-acme", user_id="u-1")
        set_request_context(context)
        self.assertIs(get_request_context(), context)
        clear_request_context()
        self.assertIsNone(get_request_context())

    async def test_none_rejected(self):
        with self.assertRaises(ValueError):
            set_request_context(None)


class TestRequestContextFilter(unittest.TestCase):

    def tearDown(self):
        clear_request_context()

    def make_record(self):
        return logging.LogRecord("test", logging.INFO, __file__, 1, "msg", None, None)

    def test_defaults_outside_request(self):
        record = self.make_record()
        self.assertTrue(RequestContextFilter().filter(record))
        self.assertEqual(record.tenant_id, "NO_TENANT")
        self.assertEqual(record.user_id, "ANONYMOUS")

    def test_fields_from_context(self):
        set_request_context(RequestContext(tenant_id="t-acme", user_id="u-1"))
        record = self.make_record()
        RequestContextFilter().filter(record)
        self.assertEqual(record.tenant_id, "t-acme")
        self.assertEqual(record.user_id, "u-1")


class TestDependencies(unittest.TestCase):

    def request_with(self, context=None):
        state = SimpleNamespace()
        if context is not None:
            state.context = context
        return SimpleNamespace(state=state)

    def test_missing_context_is_anonymous(self):
        self.assertEqual(dependency_context(self.request_with()), RequestContext())
        with self.assertRaises(HTTPException) as cm:
            require_session_context(self.request_with())
        self.assertEqual(cm.exception.status_code, 401)

    def test_platform_caller_has_no_institute(self):
        request = self.request_with(RequestContext(user_id="u-root", roles=("SUPER_ADMIN",)))
        self.assertEqual(require_session_context(request).user_id, "u-root")
        with self.assertRaises(HTTPException) as cm:
            require_tenant_api_context(request)
        self.assertEqual(cm.exception.detail, "Institute context required")

    def test_institute_caller(self):
        request = self.request_with(RequestContext(tenant_id="t-acme", user_id="u-1"))
        self.assertEqual(require_tenant_api_context(request).tenant_id, "t-acme")


class TestSession(unittest.TestCase):

    def test_affiliation_required_unless_super_admin(self):
        with self.assertRaises(ValidationError):
            Session(user_id="u-1", email="x@test", roles=frozenset({"TEACHER"}))
        self.assertIsNone(ROOT.tenant_id)

    def test_has_any_role(self):
        self.assertTrue(TEACHER.has_any_role({"TEACHER", "INSTITUTE_ADMIN"}))
        self.assertFalse(TEACHER.has_any_role({"INSTITUTE_ADMIN"}))


class TestHelpers(unittest.TestCase):

    def test_dashboard_path_for(self):
        self.assertEqual(dashboard_path_for(["STUDENT", "SUPER_ADMIN"]), "/super-admin/dashboard")
        self.assertEqual(dashboard_path_for(("TEACHER",)), "/teacher/dashboard")
        self.assertEqual(dashboard_path_for(()), "/")


class TestTTLCache(unittest.TestCase):

    def setUp(self):
        self.now = 0.0
        self.cache = TTLCache(10, clock=lambda: self.now)

    def test_expiry(self):
        self.cache.set("acme", "value")
        self.now = 9.5
        self.assertEqual(self.cache.get("acme"), "value")
        self.now = 10.0
        self.assertTrue(TTLCache.is_missing(self.cache.get("acme")))
        self.assertEqual(len(self.cache), 0)

    def test_cached_none_is_a_hit(self):
        self.cache.set("ghost", None)
        self.assertIsNone(self.cache.get("ghost"))
        self.assertFalse(TTLCache.is_missing(self.cache.get("ghost")))

    def test_disabled(self):
        cache = TTLCache(0)
        cache.set("acme", "value")
        self.assertFalse(cache.enabled)
        self.assertEqual(len(cache), 0)

    def test_size_is_bounded(self):
        cache = TTLCache(10, max_entries=3, clock=lambda: self.now)
        for i in range(10):
            cache.set(f"junk{i}", None)
        self.assertEqual(len(cache), 3)
        self.assertTrue(TTLCache.is_missing(cache.get("junk0")))
        self.assertIsNone(cache.get("junk9"))

    def test_restore_moves_key_to_newest(self):
        cache = TTLCache(10, max_entries=2, clock=lambda: self.now)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.set("a", 3)
        cache.set("c", 4)
        self.assertEqual(cache.get("a"), 3)
        self.assertTrue(TTLCache.is_missing(cache.get("b")))

    def test_expired_entries_swept_on_store(self):
        self.cache.set("a", 1)
        self.cache.set("b", 2)
        self.now = 5.0
        self.cache.set("c", 3)
        self.now = 12.0
        self.cache.set("d", 4)
        self.assertEqual(len(self.cache), 2)
        self.assertEqual(self.cache.get("c"), 3)


if __name__ == '__main__':
    unittest.main()
