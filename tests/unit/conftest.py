"""Unit test configuration - small corpora and isolated environment"""

import logging
import os

import pytest

from memory_search.config import ENV_PREFIX


def _is_engine_variable(name: str) -> bool:
    return name.startswith(ENV_PREFIX) or name == "LOG_LEVEL"


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """
    Remove MEMORY_SEARCH_* and LOG_LEVEL variables for each test.

    Tests that exercise configuration set exactly the variables they need.
    """
    for name in list(os.environ):
        if _is_engine_variable(name):
            monkeypatch.delenv(name, raising=False)

    yield

    # load_dotenv() writes os.environ directly, outside of monkeypatch
    for name in list(os.environ):
        if _is_engine_variable(name):
            del os.environ[name]


@pytest.fixture
def restore_root_logger():
    """Close the handlers installed by setup_logging() after the test"""
    root_logger = logging.getLogger()
    handlers = list(root_logger.handlers)
    level = root_logger.level
    yield root_logger
    # pytest re-attaches its own capture handlers per phase
    for handler in list(root_logger.handlers):
        if handler not in handlers:
            root_logger.removeHandler(handler)
            handler.close()
    root_logger.setLevel(level)


@pytest.fixture
def animal_corpus():
    """
    Five short documents; "cat" appears in two of them.

    With N=5 and df=2, idf("cat") = ln(5/3) > 0, so cat queries score.
    """
    return {
        "cats": "The cat sat on the mat and the cat purred",
        "dogs": "The dog barked at the mailman all morning",
        "mixed": "A cat and a dog shared one sunny garden",
        "birds": "Sparrows nest under the roof every spring",
        "fish": "Goldfish swim slowly around the glass bowl",
    }


@pytest.fixture
def long_text():
    """About 2000 characters of prose with sentence and paragraph breaks"""
    paragraph = (
        "Memory systems let an agent recall earlier conversations. "
        "Each entry is indexed when it is written, and searched again when a new message arrives. "
        "Relevant entries are injected into the prompt so the model can use them. "
        "Old entries fade in importance but are never silently rewritten. "
    )
    text = "\n\n".join([paragraph] * 7)
    return text[:2000]
