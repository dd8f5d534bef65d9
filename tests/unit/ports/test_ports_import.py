import importlib

import pytest

PORT_MODULES = [
    "vault_resource.ports.clock",
    "vault_resource.ports.secret_backend",
]


@pytest.mark.parametrize("module_name", PORT_MODULES)
def test_all_ports_import(module_name):
    assert importlib.import_module(module_name)
