"""Project-level lint run: read inputs, parse them, apply the rules."""

import logging
from pathlib import Path

from api_contract_linter.config import LintConfig
from api_contract_linter.linter.rules import lint_endpoints
from api_contract_linter.parser.base import LintError
from api_contract_linter.parser.postman import parse_postman
from api_contract_linter.parser.requests import extract_endpoints
from api_contract_linter.parser.sources import load_sources
from api_contract_linter.parser.types import build_registry

logger = logging.getLogger(__name__)


def lint_project(
    requests_path: Path,
    types_path: Path,
    collection_path: Path,
    config: LintConfig | None = None,
) -> list[LintError]:
    """Lint the request files and type declarations against a Postman collection."""
    config = config or LintConfig()

    contract = parse_postman(collection_path)
    logger.info("Loaded %d contract endpoints from %s", len(contract), collection_path)

    request_sources = load_sources(requests_path, config.extensions, config.exclude)
    code = extract_endpoints(request_sources, config.call_name, config.serializer)
    logger.info("Extracted %d endpoints from %s", len(code), requests_path)

    types = build_registry(load_sources(types_path, config.extensions, config.exclude))
    logger.info("Collected %d type declarations from %s", len(types), types_path)

    return lint_endpoints(contract, code, types)
