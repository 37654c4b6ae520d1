"""
batch_runner.py - Batch scoring and dashboard export for the Wellness Risk Engine

Builds the scored employee roster from one source, optionally asks the AI
analysis service a question about it, and writes the dashboard artifact.

Sources:
    seed         Deterministic demo roster (no input file).
    spreadsheet  First sheet of an .xlsx/.xls workbook, or a .csv file.
                 Bad rows are reported and skipped; the batch continues.
    api          A saved employee-directory payload ({"count", "employees"}).

Output:
    output/dashboard_data.json, validated against
    schemas/dashboard_data.schema.json before it is written:
    {
        "metadata": { timestamp, source, total_employees, risk_counts, ... },
        "employees": [ { id, fullName, ..., overallRisk, recommendation }, ... ],
        "ai_filter": null | { disease, entries: [...], rawResponse }
    }

Usage:
    $ python batch_runner.py --source seed
    $ python batch_runner.py --source spreadsheet --input staff.xlsx
    $ python batch_runner.py --source api --input employees.json \\
        --prompt "Who is most at risk of diabetes?" --contract structured
"""

from __future__ import annotations

import argparse
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional, Sequence

from ai_analysis import AIAnalysisClient, AIServiceError, UnauthorizedError
from ai_response_parser import ResponseContract, normalize_for_contract, response_text
from ai_risk_resolver import describe_filter_for_chat, format_ai_response_for_chat, resolve
from config import AI_RESPONSE_CONTRACT, OUTPUT_DIR
from dashboard_state import DashboardController
from employee_source import map_employees_response
from member_import import import_members_from_spreadsheet, summarize_import_errors
from member_models import AIRiskFilterData, EmployeeRecord
from schema_validation import validate_dashboard_data
from seed_members import build_seed_members

logger = logging.getLogger(__name__)

OUTPUT_PATH = OUTPUT_DIR / "dashboard_data.json"
SOURCES = ("seed", "spreadsheet", "api")


def _now_iso() -> str:
    """Generate ISO 8601 timestamp in UTC."""
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def load_members(source: str, input_path: Optional[Path] = None) -> tuple[list[EmployeeRecord], list[str]]:
    """
    Build the roster for `source`. Returns (members, import_errors).

    Raises:
        ValueError: unknown source, or a file-based source without --input.
        FileNotFoundError: the input file does not exist.
    """
    if source == "seed":
        return build_seed_members(), []

    if input_path is None:
        raise ValueError(f"--input is required for source '{source}'")
    input_path = Path(input_path)

    if source == "spreadsheet":
        result = import_members_from_spreadsheet(input_path)
        for line in summarize_import_errors(result.errors):
            logger.warning("Import: %s", line)
        return result.members, result.errors

    if source == "api":
        if not input_path.exists():
            raise FileNotFoundError(f"Input file not found: {input_path}")
        with open(input_path, encoding="utf-8") as f:
            payload = json.load(f)
        return map_employees_response(payload), []

    raise ValueError(f"Unknown source: {source}")


def run_ai_query(
    members: Sequence[EmployeeRecord],
    prompt: str,
    contract: ResponseContract,
    client: Optional[AIAnalysisClient] = None,
) -> tuple[Optional[AIRiskFilterData], Optional[str]]:
    """
    Ask the AI service `prompt` and resolve its reply. Returns (filter, chat_reply).

    Service failures are logged and yield (None, None); an unauthorized reply is
    re-raised so the caller can end the session.
    """
    client = client or AIAnalysisClient(contract=contract)
    try:
        raw = client.analyse(prompt, members)
    except UnauthorizedError:
        raise
    except AIServiceError as e:
        logger.error("AI query failed: %s", e)
        return None, None

    normalized = normalize_for_contract(raw, contract)
    ai_filter = resolve(normalized, prompt, members)

    if contract is ResponseContract.FREE_TEXT:
        chat_reply = response_text(normalized)
    else:
        chat_reply = format_ai_response_for_chat(raw, members)

    if ai_filter is not None:
        logger.info("%s", describe_filter_for_chat(ai_filter))
        if not ai_filter.matched_scores:
            logger.warning("None of the %d AI entries matched a known employee", len(ai_filter.entries))
    return ai_filter, chat_reply


def build_dashboard_payload(
    controller: DashboardController,
    source: str,
    input_path: Optional[Path],
    import_errors: Sequence[str],
    prompt: Optional[str] = None,
    contract: Optional[ResponseContract] = None,
    model_name: Optional[str] = None,
    chat_reply: Optional[str] = None,
) -> dict[str, Any]:
    ai_filter = controller.ai_filter
    members = controller.filtered_members() if ai_filter is not None else controller.members
    return {
        "metadata": {
            "timestamp": _now_iso(),
            "source": source,
            "input_path": str(input_path) if input_path else None,
            "total_employees": len(controller.members),
            "risk_counts": controller.risk_counts(),
            "import_errors": list(import_errors),
            "ai_prompt": prompt,
            "ai_contract": contract.value if (prompt and contract) else None,
            "ai_model": model_name if prompt else None,
            "ai_chat_reply": chat_reply,
        },
        "employees": [m.to_dict() for m in members],
        "ai_filter": ai_filter.to_dict() if ai_filter is not None else None,
    }


def write_dashboard_data(payload: dict[str, Any], output_path: Path = OUTPUT_PATH) -> Path:
    """Validate, then write. A payload that fails the schema is never written."""
    validate_dashboard_data(payload)
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2)
    logger.info("Wrote %d employee(s) to %s", len(payload["employees"]), output_path)
    return output_path


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Score employees and export the wellness dashboard data.")
    parser.add_argument("--source", choices=SOURCES, default="seed", help="Where the employee roster comes from")
    parser.add_argument("--input", type=Path, help="Spreadsheet/CSV or saved API payload (JSON)")
    parser.add_argument("--prompt", help="Optional question for the AI analysis service")
    parser.add_argument(
        "--contract",
        choices=[c.value for c in ResponseContract],
        default=AI_RESPONSE_CONTRACT,
        help="AI reply contract to expect",
    )
    parser.add_argument("--output", type=Path, default=OUTPUT_PATH, help="Export path")
    return parser


def run_batch(argv: Optional[Sequence[str]] = None, client: Optional[AIAnalysisClient] = None) -> dict[str, Any]:
    """
    Execute one export run and return the payload that was written.

    Raises:
        jsonschema.ValidationError: the export does not match the schema.
    """
    args = build_parser().parse_args(argv)
    contract = ResponseContract(args.contract)

    members, import_errors = load_members(args.source, args.input)
    logger.info("Batch starting [%s]: %d employee(s)", args.source, len(members))

    controller = DashboardController()
    token = controller.begin_employee_fetch()
    controller.complete_employee_fetch(token, members)

    chat_reply = None
    model_name = None
    if args.prompt:
        client = client or AIAnalysisClient(contract=contract)
        model_name = client.model
        ai_token = controller.begin_ai_request()
        ai_filter, chat_reply = run_ai_query(controller.members, args.prompt, contract, client)
        controller.complete_ai_request(ai_token, ai_filter)

    payload = build_dashboard_payload(
        controller,
        args.source,
        args.input,
        import_errors,
        prompt=args.prompt,
        contract=contract,
        model_name=model_name,
        chat_reply=chat_reply,
    )
    write_dashboard_data(payload, args.output)
    return payload


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    run_batch()
