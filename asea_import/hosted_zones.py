"""
Private hosted zone names for interface endpoints.

The zone AWS expects for an interface endpoint is not a pure function of the
service name. Dotted service names are usually reversed (``ssm.contacts`` lives
in ``contacts.ssm.<region>.amazonaws.com``), a handful are not, and some
services use an abbreviated or non-regional domain.
"""

from typing import Dict

# Dotted services whose zone keeps the original order
NON_REVERSED_SERVICES = frozenset(
    [
        "ecr.dkr",
        "ecr.api",
        "sagemaker.api",
        "sagemaker.runtime",
        "sagemaker.runtime-fips",
        "sagemaker.featurestore-runtime",
        "transfer.server",
        "deviceadvisor.iot",
    ]
)

# Services whose zone name is fixed; "{region}" is substituted
SPECIAL_CASE_ZONES: Dict[str, str] = {
    "appstream.api": "appstream2.{region}.amazonaws.com",
    "deviceadvisor.iot": "deviceadvisor.iot.{region}.amazonaws.com",
    "pinpoint-sms-voice-v2": "sms-voice.{region}.amazonaws.com",
    "rum-dataplane": "dataplane.rum.{region}.amazonaws.com",
    "s3-global.accesspoint": "s3-global.accesspoint.amazonaws.com",
    "ecs-agent": "ecs-a.{region}.amazonaws.com",
    "ecs-telemetry": "ecs-t.{region}.amazonaws.com",
    "codeartifact.api": "codeartifact.{region}.amazonaws.com",
    "notebook": "notebook.{region}.sagemaker.aws",
    "studio": "studio.{region}.sagemaker.aws",
}


def endpoint_hosted_zone_name(service: str, region: str) -> str:
    """Hosted zone name (without trailing dot) for an interface endpoint service."""
    special = SPECIAL_CASE_ZONES.get(service)
    if special is not None:
        return special.format(region=region)

    if "." in service and service not in NON_REVERSED_SERVICES:
        service = ".".join(reversed(service.split(".")))

    return f"{service}.{region}.amazonaws.com"


def endpoint_service_name(service: str, region: str) -> str:
    """``ServiceName`` property of the interface endpoint for ``service``."""
    if service == "notebook":
        return f"aws.sagemaker.{region}.{service}"
    return f"com.amazonaws.{region}.{service}"
