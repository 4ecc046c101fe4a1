"""
Template and parameter file loading.

Parameter files may hold either a plain mapping::

    Environment: prod
    InstanceCount: 2

or the list format used by the ``aws cloudformation`` CLI::

    [{"ParameterKey": "Environment", "ParameterValue": "prod"}]

JSON is a subset of YAML, so both are read with ``yaml.safe_load``.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

import yaml

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Parameter:
    """A single stack parameter."""

    key: str
    value: Optional[str] = None
    use_previous_value: bool = False

    def to_cloudformation(self) -> Dict[str, Any]:
        """Convert to the shape CreateStack/UpdateStack expect."""
        if self.use_previous_value:
            return {"ParameterKey": self.key, "UsePreviousValue": True}
        return {"ParameterKey": self.key, "ParameterValue": self.value or ""}


ParameterInput = Union[Dict[str, Any], Iterable[Any], None]


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ",".join(_stringify(v) for v in value)
    if value is None:
        return ""
    return str(value)


def normalize_parameters(data: ParameterInput) -> List[Parameter]:
    """
    Normalize parameters into an ordered list of Parameter objects.

    Accepts a mapping, a list of CloudFormation-style dicts, a list of
    (key, value) pairs, or Parameter instances. Duplicate keys are kept;
    the service decides what to do with them.
    """
    if data is None:
        return []

    if isinstance(data, dict):
        return [Parameter(str(key), _stringify(value)) for key, value in data.items()]

    parameters = []
    for item in data:
        if isinstance(item, Parameter):
            parameters.append(item)
        elif isinstance(item, dict):
            if "ParameterKey" not in item:
                raise ValueError(f"Parameter entry is missing ParameterKey: {item}")
            parameters.append(
                Parameter(
                    key=str(item["ParameterKey"]),
                    value=_stringify(item.get("ParameterValue")),
                    use_previous_value=bool(item.get("UsePreviousValue", False)),
                )
            )
        elif isinstance(item, (list, tuple)) and len(item) == 2:
            parameters.append(Parameter(str(item[0]), _stringify(item[1])))
        else:
            raise ValueError(f"Unsupported parameter entry: {item!r}")

    return parameters


def load_parameters(path: Optional[Union[str, Path]]) -> List[Parameter]:
    """Load parameters from a JSON or YAML file."""
    if path is None:
        return []

    path = Path(path)
    with open(path, "r") as f:
        data = yaml.safe_load(f)

    if data is not None and not isinstance(data, (dict, list)):
        raise ValueError(f"Parameter file {path} must contain a mapping or a list")

    parameters = normalize_parameters(data)
    logger.debug(f"Loaded {len(parameters)} parameters from {path}")
    return parameters


def load_template(path: Union[str, Path]) -> str:
    """Read a template body verbatim; its contents are not interpreted."""
    path = Path(path)
    body = path.read_text()
    logger.debug(f"Loaded template {path} ({len(body)} bytes)")
    return body
