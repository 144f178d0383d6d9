"""
config.py — Credentials and Order Profiles

Credentials come from four required environment variables. A missing variable is a
startup-time error, reported before the first remote call.

An order profile holds everything that differs between two server orders: the product
plan code, the configuration entries and the list of options. Profiles are either one of
the built-in `PROFILES` or loaded from a JSON file.
"""

import os
from pathlib import Path
from typing import Dict, List, Mapping, Optional

from pydantic import BaseModel, Field, ValidationError

from .errors import ConfigurationError
from .models import ConfigurationRequest

ENV_ENDPOINT = "OVH_ENDPOINT"
ENV_APPLICATION_KEY = "OVH_APPLICATION_KEY"
ENV_APPLICATION_SECRET = "OVH_APPLICATION_SECRET"
ENV_CONSUMER_KEY = "OVH_CONSUMER_KEY"

REQUIRED_ENV_VARS = (ENV_ENDPOINT, ENV_APPLICATION_KEY, ENV_APPLICATION_SECRET, ENV_CONSUMER_KEY)

DEFAULT_PROFILE = "rise-full"


class ApiCredentials(BaseModel):
    """
    Application credentials for the signed commerce API.

    Attributes:
        endpoint (str): Endpoint name understood by the SDK (e.g. 'ovh-us', 'ovh-eu').
        application_key (str): Application key.
        application_secret (str): Application secret, used only for request signing.
        consumer_key (str): Consumer key bound to the customer account.
    """
    endpoint: str = Field(..., min_length=1)
    application_key: str = Field(..., min_length=1)
    application_secret: str = Field(..., min_length=1, repr=False)
    consumer_key: str = Field(..., min_length=1, repr=False)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ApiCredentials":
        """
        Reads the credentials from the environment.

        Args:
            environ: Mapping to read from. Defaults to `os.environ`.

        Raises:
            ConfigurationError: If any of the required variables is missing or empty.
        """
        environ = os.environ if environ is None else environ
        missing = [name for name in REQUIRED_ENV_VARS if not environ.get(name)]
        if missing:
            raise ConfigurationError(
                f"Please set {', '.join(REQUIRED_ENV_VARS)} environment variables "
                f"(missing: {', '.join(missing)})"
            )
        return cls(
            endpoint=environ[ENV_ENDPOINT],
            application_key=environ[ENV_APPLICATION_KEY],
            application_secret=environ[ENV_APPLICATION_SECRET],
            consumer_key=environ[ENV_CONSUMER_KEY],
        )


class OrderProfile(BaseModel):
    """
    The data of one server order.

    Attributes:
        subsidiary (str): Subsidiary the cart is created for.
        description (str): Cart description.
        plan_code (str): Plan code of the server product.
        duration (str): ISO 8601 billing period, shared by the server and its options.
        pricing_mode (str): Pricing mode, shared by the server and its options.
        quantity (int): Quantity of the server and of each option.
        configuration (List[ConfigurationRequest]): Required item attributes, applied in order.
        options (List[str]): Plan codes of the options to attach, added in order.
    """
    subsidiary: str = "US"
    description: str = "Automated Dedicated Server Order"
    plan_code: str = "24rise01-us"
    duration: str = "P1M"
    pricing_mode: str = "default"
    quantity: int = Field(1, gt=0)
    configuration: List[ConfigurationRequest] = Field(default_factory=list)
    options: List[str] = Field(default_factory=list)

    @classmethod
    def from_file(cls, path: Path) -> "OrderProfile":
        """
        Loads a profile from a JSON file.

        Raises:
            ConfigurationError: If the file cannot be read or does not describe a valid profile.
        """
        try:
            return cls.model_validate_json(Path(path).read_text(encoding="utf-8"))
        except OSError as e:
            raise ConfigurationError(f"cannot read order profile {path}: {e}") from e
        except ValidationError as e:
            raise ConfigurationError(f"invalid order profile {path}: {e}") from e


def _rise_configuration(os_value: str) -> List[ConfigurationRequest]:
    return [
        ConfigurationRequest(label="dedicated_os", value=os_value),
        ConfigurationRequest(label="region", value="united_states"),
        ConfigurationRequest(label="dedicated_datacenter", value="hil"),
    ]


PROFILES: Dict[str, OrderProfile] = {
    # RISE-1 in Hillsboro with a vRack bandwidth option only
    "rise-vrack": OrderProfile(
        configuration=_rise_configuration("none_64_en"),
        options=["vrack-bandwidth-1000-24rise-us"],
    ),
    # RISE-1 in Hillsboro with vRack, soft RAID, RAM and public bandwidth options
    "rise-full": OrderProfile(
        configuration=_rise_configuration("none_64.en"),
        options=[
            "vrack-bandwidth-1000-24rise-us",
            "softraid-2x512nvme-24rise-us",
            "ram-32g-ecc-3200-24rise-us",
            "bandwidth-1000-unguaranteed-24rise-us",
        ],
    ),
}


def get_profile(name: str) -> OrderProfile:
    """
    Returns a copy of a built-in profile.

    Raises:
        ConfigurationError: If no profile has that name.
    """
    try:
        return PROFILES[name].model_copy(deep=True)
    except KeyError:
        raise ConfigurationError(
            f"unknown order profile '{name}' (available: {', '.join(sorted(PROFILES))})"
        ) from None
