# src/main.py — v2
"""CLI entry point: run-phase, prompts, clear-session, status commands.

Usage:
    plan2bim run-phase <n> --image plan.png [--prior results.json]
    plan2bim prompts list <n>
    plan2bim prompts bootstrap [directory]
    plan2bim prompts activate <n> <key>
    plan2bim clear-session <session_id>
    plan2bim status
"""

from __future__ import annotations

import argparse
import asyncio
import base64
import json
import logging
import mimetypes
import sys
from pathlib import Path
from typing import Any

from plan2bim.version import __version__

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    from plan2bim.config.settings import load_settings

    settings = load_settings()
    _setup_logging(settings, args.verbose)

    try:
        return asyncio.run(args.func(args, settings))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="plan2bim",
        description=f"plan2bim v{__version__}: floor plan to BIM JSON pipeline",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- run-phase ---
    p_run = subparsers.add_parser("run-phase", help="Run a single pipeline phase")
    p_run.add_argument("phase", type=int, help="Phase number (1-6)")
    p_run.add_argument("--image", type=Path, default=None, help="Floor plan image")
    p_run.add_argument(
        "--prior", type=Path, default=None,
        help="JSON file mapping phase1..phase5 to prior results",
    )
    p_run.add_argument("--prompt-version", default=None, help="Explicit prompt version")
    p_run.add_argument("--session", default=None, help="Session identifier")
    p_run.add_argument(
        "--default-templates", action="store_true",
        help="Use generic templates for phases without stored prompts",
    )
    p_run.set_defaults(func=_cmd_run_phase)

    # --- prompts ---
    p_prompts = subparsers.add_parser("prompts", help="Manage prompt versions")
    prompt_cmds = p_prompts.add_subparsers(dest="prompts_command")

    p_list = prompt_cmds.add_parser("list", help="List versions of a phase prompt")
    p_list.add_argument("phase", type=int)
    p_list.set_defaults(func=_cmd_prompts_list)

    p_boot = prompt_cmds.add_parser(
        "bootstrap", help="Load phase{N}.md files for phases with no prompts",
    )
    p_boot.add_argument(
        "directory", type=Path, nargs="?", default=None,
        help="Directory with phase1.md..phase6.md (default: PROMPT_BOOTSTRAP_DIR)",
    )
    p_boot.set_defaults(func=_cmd_prompts_bootstrap)

    p_act = prompt_cmds.add_parser("activate", help="Mark a prompt version active")
    p_act.add_argument("phase", type=int)
    p_act.add_argument("key", help="Prompt key, e.g. prompts/phase1/v1.1.0.json")
    p_act.set_defaults(func=_cmd_prompts_activate)

    # --- clear-session ---
    p_clear = subparsers.add_parser("clear-session", help="Delete a session's results")
    p_clear.add_argument("session_id")
    p_clear.set_defaults(func=_cmd_clear_session)

    # --- status ---
    p_status = subparsers.add_parser("status", help="Check inference service status")
    p_status.set_defaults(func=_cmd_status)

    return parser


async def _cmd_run_phase(args: argparse.Namespace, settings: Any) -> int:
    """Run one phase and print the response envelope."""
    from plan2bim.api.facade import build_orchestrator, run_phase

    payload: dict[str, Any] = {
        "phaseNumber": args.phase,
        "promptVersion": args.prompt_version,
        "sessionId": args.session,
    }
    if args.image is not None:
        if not args.image.is_file():
            logger.error("Image not found: %s", args.image)
            return 1
        payload["imageBase64"] = _to_data_url(args.image)
    if args.prior is not None:
        payload["previousResults"] = json.loads(args.prior.read_text(encoding="utf-8"))

    orchestrator = build_orchestrator(settings, use_default_templates=args.default_templates)
    envelope = await run_phase(payload, orchestrator)
    _print_json(envelope)
    return 0 if envelope.get("success") else 1


async def _cmd_prompts_list(args: argparse.Namespace, settings: Any) -> int:
    from plan2bim.prompts.repository import PromptRepository
    from plan2bim.storage.store_factory import create_blob_store

    repository = PromptRepository(create_blob_store(settings))
    versions = await repository.list_versions(args.phase)
    _print_json([
        v.model_dump(mode="json", exclude={"content"}) | {"chars": len(v.content)}
        for v in versions
    ])
    return 0


async def _cmd_prompts_bootstrap(args: argparse.Namespace, settings: Any) -> int:
    from plan2bim.prompts.repository import PromptRepository
    from plan2bim.storage.store_factory import create_blob_store

    directory: Path = args.directory or settings.prompt_bootstrap_dir
    if not directory.is_dir():
        logger.error("Not a directory: %s", directory)
        return 1

    repository = PromptRepository(create_blob_store(settings))
    loaded = await repository.bootstrap(directory, settings.prompt_bootstrap_version)
    _print_json([v.key for v in loaded])
    return 0


async def _cmd_prompts_activate(args: argparse.Namespace, settings: Any) -> int:
    from plan2bim.prompts.repository import PromptRepository
    from plan2bim.storage.store_factory import create_blob_store

    repository = PromptRepository(create_blob_store(settings))
    activated = await repository.set_active(args.phase, args.key)
    _print_json({"key": activated.key, "version": activated.version})
    return 0


async def _cmd_clear_session(args: argparse.Namespace, settings: Any) -> int:
    from plan2bim.api.facade import clear_session
    from plan2bim.storage.result_store import create_result_store

    removed = await clear_session(args.session_id, create_result_store(settings))
    _print_json({"sessionId": args.session_id, "removed": removed})
    return 0


async def _cmd_status(args: argparse.Namespace, settings: Any) -> int:
    from plan2bim.inference.gateway import InferenceGateway
    from plan2bim.llm.client_factory import create_llm_client

    if not settings.inference_configured:
        _print_json({"configured": False, "available": False})
        return 1

    client = create_llm_client(settings.inference_provider, settings.inference_model, settings)
    available = await InferenceGateway(client, timeout_s=settings.inference_timeout_s).check_status()
    _print_json({
        "configured": True,
        "available": available,
        "model": settings.inference_model,
    })
    return 0 if available else 1


def _to_data_url(path: Path) -> str:
    """Encode an image file as a base64 data URL."""
    media_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
    payload = base64.b64encode(path.read_bytes()).decode("ascii")
    return f"data:{media_type};base64,{payload}"


def _print_json(value: Any) -> None:
    print(json.dumps(value, ensure_ascii=False, indent=2))


def _setup_logging(settings: Any, verbose: bool) -> None:
    """Configure logging for CLI usage."""
    from plan2bim.logging.logger import setup_logging

    setup_logging(
        level="DEBUG" if verbose else settings.log_level,
        log_format=settings.log_format,
        log_file=settings.log_file or None,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )


if __name__ == "__main__":
    sys.exit(main())
