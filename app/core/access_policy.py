"""
Static access policy for the admission middleware.

Everything here is data: the route authorizer walks these tables in order and
holds no path or role literals of its own.
"""

from typing import FrozenSet, NamedTuple, Tuple

from app.schemas.session import Role


class RouteGuard(NamedTuple):
    prefix: str
    allowed_roles: FrozenSet[str]


def _roles(*roles: Role) -> FrozenSet[str]:
    return frozenset(role.value for role in roles)


# Redirect targets
LOGIN_PATH = "/login"
UNAUTHORIZED_PATH = "/unauthorized"
PASSWORD_CHANGE_PATH = "/change-password"
TENANT_NOT_FOUND_PATH = "/institute-not-found"
LOGIN_RETURN_PARAM = "redirect"

# Reachable without a session
PUBLIC_ROUTES: Tuple[str, ...] = (
    LOGIN_PATH,
    "/auth",
    "/api/auth",
    "/forgot-password",
    "/reset-password",
    TENANT_NOT_FOUND_PATH,
    UNAUTHORIZED_PATH,
    "/api/v1/health",
)

# Still reachable while a forced password change is pending
PASSWORD_CHANGE_ROUTES: Tuple[str, ...] = (
    PASSWORD_CHANGE_PATH,
    "/api/auth/change-password",
    "/api/auth/logout",
)

# Labels that can never be an institute key
RESERVED_SUBDOMAINS: FrozenSet[str] = frozenset({
    "www",
    "api",
    "admin",
    "admin-platform",
    "app",
    "dashboard",
    "mail",
    "email",
    "ftp",
    "localhost",
    "staging",
    "dev",
    "demo",
    "support",
    "help",
    "docs",
    "blog",
    "status",
})

# First matching prefix wins
ROUTE_GUARDS: Tuple[RouteGuard, ...] = (
    RouteGuard("/super-admin", _roles(Role.SUPER_ADMIN)),
    RouteGuard("/admin", _roles(Role.INSTITUTE_ADMIN, Role.SUPER_ADMIN)),
    RouteGuard("/teacher", _roles(Role.TEACHER, Role.SUPER_ADMIN)),
    RouteGuard("/student", _roles(Role.STUDENT, Role.SUPER_ADMIN)),
    RouteGuard("/api/super-admin", _roles(Role.SUPER_ADMIN)),
    RouteGuard("/api/institute", _roles(Role.INSTITUTE_ADMIN, Role.TEACHER, Role.SUPER_ADMIN)),
    RouteGuard("/api/teacher", _roles(Role.TEACHER, Role.SUPER_ADMIN)),
    RouteGuard("/api/student", _roles(Role.STUDENT, Role.SUPER_ADMIN)),
)

# Pages that only make sense on an institute subdomain
TENANT_SCOPED_PREFIXES: Tuple[str, ...] = ("/admin", "/teacher", "/student")

# Requests that bypass admission entirely
EXCLUDED_PREFIXES: Tuple[str, ...] = ("/static", "/docs", "/openapi.json", "/health")
EXCLUDED_FILES: Tuple[str, ...] = ("/favicon.ico", "/robots.txt")
STATIC_EXTENSIONS: Tuple[str, ...] = (".svg", ".png", ".jpg", ".jpeg", ".gif", ".webp", ".ico")

# Role priority for landing pages
DASHBOARD_PATHS: Tuple[Tuple[str, str], ...] = (
    (Role.SUPER_ADMIN.value, "/super-admin/dashboard"),
    (Role.INSTITUTE_ADMIN.value, "/admin/dashboard"),
    (Role.TEACHER.value, "/teacher/dashboard"),
    (Role.STUDENT.value, "/student/dashboard"),
)


def path_matches(path: str, prefix: str) -> bool:
    """Segment aware prefix match: "/admin" matches "/admin/x" but not "/administrator"."""
    if prefix == "/":
        return True
    return path == prefix or path.startswith(prefix.rstrip("/") + "/")


def is_public_path(path: str) -> bool:
    return any(path_matches(path, route) for route in PUBLIC_ROUTES)


def is_password_change_path(path: str) -> bool:
    return any(path_matches(path, route) for route in PASSWORD_CHANGE_ROUTES)


def is_tenant_scoped_path(path: str) -> bool:
    return any(path_matches(path, prefix) for prefix in TENANT_SCOPED_PREFIXES)


def is_reserved_subdomain(label: str) -> bool:
    return label.lower() in RESERVED_SUBDOMAINS


def find_route_guard(path: str):
    for guard in ROUTE_GUARDS:
        if path_matches(path, guard.prefix):
            return guard
    return None


def is_excluded_path(path: str) -> bool:
    if path in EXCLUDED_FILES:
        return True
    if any(path_matches(path, prefix) for prefix in EXCLUDED_PREFIXES):
        return True
    return path.lower().endswith(STATIC_EXTENSIONS)


def dashboard_path_for(roles) -> str:
    for role, path in DASHBOARD_PATHS:
        if role in roles:
            return path
    return "/"
