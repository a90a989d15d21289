"""Load test cases from YAML or JSON files."""

import json
from pathlib import Path
from typing import Union

import yaml

from formpilot.models.step_models import TestCase, decode_test_case


def load_test_case_file(path: Union[str, Path]) -> TestCase:
    """
    Load a test case document from a file.

    ``.json`` files are parsed as JSON, anything else as YAML. The document
    has the store's shape: ``title`` plus ``testSteps`` (or ``steps``).

    Args:
        path: File path

    Returns:
        Decoded test case

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file does not hold a mapping
    """
    path = Path(path)
    with open(path) as f:
        if path.suffix.lower() == ".json":
            document = json.load(f)
        else:
            document = yaml.safe_load(f)

    if not isinstance(document, dict):
        raise ValueError(f"Test case file {path} must contain a mapping")
    return decode_test_case(document)
