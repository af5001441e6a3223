# bmsync Default Configuration
# Default configuration as Python dict and YAML generator

from typing import Any

import yaml

DEFAULT_CONFIG: dict[str, Any] = {
    "default_alias": "default",
    "instances": {
        "default": {
            "url": "https://example.bizmanage.com",
            "timeout": 30.0,
            "request_delay_ms": 0,
        },
    },
    "push_endpoints": {},
    "output": {
        "verbose": False,
        "colored": True,
    },
}


def generate_default_config() -> str:
    """Generate default configuration as YAML string with comments."""
    header = """# bmsync Configuration
#
# instances: platform instances by alias. The API key can be set per
# instance (api_key) or through the BMSYNC_API_KEY environment variable.
#
# push_endpoints: REST path per item kind used by 'bmsync push'.
# Object definitions are always pushed to
# /restapi/customization/view-by-internal-name. Other kinds are pushed
# only when an endpoint is configured here, for example:
#
#   push_endpoints:
#     backend-script: /restapi/<backend-script-endpoint>
#     field: /restapi/<field-endpoint>/{object_name}

"""
    return header + yaml.dump(DEFAULT_CONFIG, default_flow_style=False, sort_keys=False, allow_unicode=True)
