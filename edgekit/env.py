"""Environment keys, run modes and the addresses of edge system services."""

from __future__ import annotations

import os
import sys

KEY_BAETYL = "BAETYL"
KEY_CONF_FILE = "BAETYL_CONF_FILE"
KEY_NODE_NAME = "BAETYL_NODE_NAME"
KEY_APP_NAME = "BAETYL_APP_NAME"
KEY_APP_VERSION = "BAETYL_APP_VERSION"
KEY_SVC_NAME = "BAETYL_SERVICE_NAME"
KEY_SYS_CONF = "BAETYL_SYSTEM_CONF"
KEY_RUN_MODE = "BAETYL_RUN_MODE"
KEY_SERVICE_DYNAMIC_PORT = "BAETYL_SERVICE_DYNAMIC_PORT"
KEY_BAETYL_HOST_PATH_LIB = "BAETYL_HOST_PATH_LIB"

RUN_MODE_KUBE = "kube"
RUN_MODE_NATIVE = "native"
RUN_MODE_ANDROID = "android"

LOCAL_HOST = "127.0.0.1"
EDGE_NAMESPACE = "baetyl-edge"
EDGE_SYSTEM_NAMESPACE = "baetyl-edge-system"
CORE_NATIVE_SYSTEM_PORT = "8443"
CORE_KUBE_SYSTEM_PORT = "443"
BROKER_SYSTEM_PORT = "50010"
FUNCTION_SYSTEM_HTTP_PORT = "50011"
FUNCTION_SYSTEM_GRPC_PORT = "50012"
DEFAULT_HOST_PATH_LIB = "/var/lib/baetyl"
DEFAULT_WINDOWS_HOST_PATH_LIB = "C:/baetyl"


def host_path_lib() -> str:
    """Return the host library path, storing the default in the environment if unset."""
    value = os.environ.get(KEY_BAETYL_HOST_PATH_LIB, "")
    if value:
        return value
    value = DEFAULT_WINDOWS_HOST_PATH_LIB if sys.platform == "win32" else DEFAULT_HOST_PATH_LIB
    os.environ[KEY_BAETYL_HOST_PATH_LIB] = value
    return value


def run_mode() -> str:
    """Return ``native`` if so configured, otherwise ``kube``."""
    mode = os.environ.get(KEY_RUN_MODE, "")
    return RUN_MODE_NATIVE if mode == RUN_MODE_NATIVE else RUN_MODE_KUBE


def edge_namespace() -> str:
    return EDGE_NAMESPACE


def edge_system_namespace() -> str:
    return EDGE_SYSTEM_NAMESPACE


def broker_port() -> str:
    return BROKER_SYSTEM_PORT


def function_http_port() -> str:
    return FUNCTION_SYSTEM_HTTP_PORT


def core_http_port() -> str:
    return CORE_NATIVE_SYSTEM_PORT if run_mode() == RUN_MODE_NATIVE else CORE_KUBE_SYSTEM_PORT


def _service_host(service: str) -> str:
    if run_mode() == RUN_MODE_NATIVE:
        return LOCAL_HOST
    return f"{service}.{EDGE_SYSTEM_NAMESPACE}"


def broker_host() -> str:
    return _service_host("baetyl-broker")


def core_host() -> str:
    return _service_host("baetyl-core")


def function_host() -> str:
    return _service_host("baetyl-function")


def gateway_host() -> str:
    return _service_host("baetyl-gateway")


def broker_address() -> str:
    return f"ssl://{broker_host()}:{broker_port()}"


def function_address() -> str:
    return f"https://{function_host()}:{function_http_port()}"


def core_address() -> str:
    return f"https://{core_host()}:{core_http_port()}"


def core_insecure_address() -> str:
    return f"http://{core_host()}:{core_http_port()}"