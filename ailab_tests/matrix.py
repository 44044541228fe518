"""
The model test matrix and helpers to load or narrow it.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from ailab_tests.types.test_case import ModelTestCase

logger = logging.getLogger(__name__)

DEFAULT_TEST_MATRIX: List[ModelTestCase] = [
    ModelTestCase(
        model="ggerganov/whisper.cpp",
        has_service=True,
        recipes=["Audio to Text"],
    ),
    ModelTestCase(
        model="facebook/detr-resnet-101",
        has_service=False,
        recipes=["Object Detection"],
    ),
    ModelTestCase(
        model="ibm-granite/granite-3.3-8b-instruct-GGUF",
        has_service=True,
        recipes=[
            "ChatBot",
            "Summarizer",
            "Code Generation",
            "RAG Chatbot",
            "ReAct Agent Application",
            "Node.js RAG Chatbot",
            "Java-based ChatBot (Quarkus)",
            "Node.js based ChatBot",
            "Function calling",
            "Node.js Function calling",
            "Graph RAG Chat Application",
        ],
        timeout=600.0,
    ),
    ModelTestCase(
        model="MaziyarPanahi/Mistral-7B-Instruct-v0.3.Q4_K_M",
        has_service=True,
        recipes=["Chatbot PydanticAI"],
        timeout=600.0,
    ),
]


def case_from_dict(data: Dict[str, Any]) -> ModelTestCase:
    """
    Build a test case from a JSON object.

    Accepts ``service`` or ``has_service``, and either ``timeout`` in
    milliseconds or ``timeout_seconds``.

    Raises:
        ValueError: If the entry is malformed
    """
    if not isinstance(data, dict):
        raise ValueError(f"Matrix entry must be an object, got {type(data).__name__}")
    if "model" not in data:
        raise ValueError(f"Matrix entry is missing 'model': {data}")

    recipes = data.get("recipes", [])
    if not isinstance(recipes, list) or not all(isinstance(r, str) for r in recipes):
        raise ValueError(f"'recipes' of {data['model']} must be a list of strings")

    timeout: Optional[float] = None
    if data.get("timeout_seconds") is not None:
        timeout = float(data["timeout_seconds"])
    elif data.get("timeout") is not None:
        timeout = float(data["timeout"]) / 1000

    return ModelTestCase(
        model=data["model"],
        has_service=bool(data.get("service", data.get("has_service", True))),
        recipes=recipes,
        timeout=timeout,
    )


def load_matrix(path: Path) -> List[ModelTestCase]:
    """Load a test matrix from a JSON file containing a list of cases."""
    with open(path, 'r') as f:
        entries = json.load(f)

    if not isinstance(entries, list):
        raise ValueError(f"{path} must contain a JSON list of test cases")

    cases = [case_from_dict(entry) for entry in entries]
    logger.info(f"Loaded {len(cases)} test case(s) from {path}")
    return cases


def filter_matrix(cases: Iterable[ModelTestCase], models: Optional[Iterable[str]] = None) -> List[ModelTestCase]:
    """Keep only the cases whose model is in ``models``, preserving order."""
    cases = list(cases)
    if not models:
        return cases
    wanted = set(models)
    unknown = wanted - {case.model for case in cases}
    if unknown:
        logger.warning(f"Models not in matrix: {', '.join(sorted(unknown))}")
    return [case for case in cases if case.model in wanted]
