#!/usr/bin/env python3
"""
Example: deploy a stack from Python instead of the CLI.

Usage:
    python examples/deploy_example.py my-stack template.yaml [params.yaml]
"""

import logging
import sys

from stackup import Stack, UpdateError, load_config
from stackup.parameters import load_parameters, load_template


def main() -> int:
    if len(sys.argv) < 3:
        print(__doc__)
        return 2

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")

    stack_name, template_path = sys.argv[1], sys.argv[2]
    parameters = load_parameters(sys.argv[3]) if len(sys.argv) > 3 else []
    template = load_template(template_path)

    stack = Stack(stack_name, config=load_config())

    if not stack.valid(template):
        print("Template is invalid")
        return 1

    try:
        deployed = stack.deploy(template, parameters)
    except UpdateError as e:
        print(f"Stack needs attention: {e}")
        return 1

    print(f"{stack_name}: {stack.status()}")
    for key, value in stack.outputs().items():
        print(f"  {key}: {value}")

    return 0 if deployed else 1


if __name__ == "__main__":
    sys.exit(main())
