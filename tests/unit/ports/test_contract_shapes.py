import importlib
import inspect

import pytest

from vault_resource.adapters.clock import SystemClock
from vault_resource.adapters.hvac_backend import HvacBackend

# Mapping of module -> (ProtocolName, required_methods: {name: arity})
PORT_PROTOCOLS = {
    "vault_resource.ports.clock": ("Clock", {"now": 0}),
    "vault_resource.ports.secret_backend": (
        "SecretBackend",
        {
            "seal_status": 0,
            "set_token": 1,
            "login": 1,  # mount and role are keyword-only
            "read": 1,
            "generate_ssh_credential": 2,
            "read_kv1": 2,
            "read_kv2": 3,
            "write_kv1": 3,
            "write_kv2": 3,
            "patch_kv2": 3,
            "renew_lease": 2,
        },
    ),
}

ADAPTERS = {
    "vault_resource.ports.clock": SystemClock,
    "vault_resource.ports.secret_backend": HvacBackend,
}


def _positional(fn):
    # remove self / cls
    sig = inspect.signature(fn)
    return [p for p in sig.parameters.values() if p.kind == p.POSITIONAL_OR_KEYWORD][1:]


@pytest.mark.parametrize("module_name,meta", PORT_PROTOCOLS.items())
def test_required_port_signatures(module_name, meta):
    proto_name, methods = meta
    module = importlib.import_module(module_name)
    proto = getattr(module, proto_name)
    assert inspect.isclass(proto), f"{proto_name} not a class"
    for method_name, arity in methods.items():
        fn = getattr(proto, method_name, None)
        assert fn is not None, f"Missing method {method_name} on {proto_name}"
        params = _positional(fn)
        assert (
            len(params) == arity
        ), f"{proto_name}.{method_name} expected {arity} args got {len(params)}"


@pytest.mark.parametrize("module_name,meta", PORT_PROTOCOLS.items())
def test_adapters_match_ports(module_name, meta):
    proto_name, methods = meta
    adapter = ADAPTERS[module_name]
    for method_name, arity in methods.items():
        fn = getattr(adapter, method_name, None)
        assert fn is not None, f"{adapter.__name__} does not implement {proto_name}.{method_name}"
        assert len(_positional(fn)) == arity
