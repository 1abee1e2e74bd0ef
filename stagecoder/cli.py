"""
StageCoder command-line entry point.

Applies natural-language change requests to a project working copy and
publishes the result to the shared staging branch.
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from stagecoder import __version__
from stagecoder.config.settings import load_config
from stagecoder.core.ai import AIProviderFactory, BaseAIProvider, ProviderNotConfiguredError
from stagecoder.core.session import MANUAL_PUSH_MESSAGE, CodingSession
from stagecoder.services.git_service import GitService
from stagecoder.services.project_service import ProjectError, ProjectService
from stagecoder.utils.path_utils import resolve_base_dir

logger = logging.getLogger(__name__)


def _emit(payload: Dict[str, Any]) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False))


def _error(message: str) -> int:
    _emit({"success": False, "error": message})
    return 1


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _load(args: argparse.Namespace) -> Dict[str, Any]:
    config_path = Path(args.config).expanduser() if args.config else None
    return load_config(config_path)


def _build_projects(args: argparse.Namespace, config: Dict[str, Any]) -> ProjectService:
    git_cfg = config.get("git") or {}
    git = GitService(
        remote=git_cfg.get("remote", "origin"),
        timeout=git_cfg.get("timeout", 120),
    )
    root = resolve_base_dir(args.workspace, config.get("workspace_dir"))
    return ProjectService(root, git=git)


def _build_agent(config: Dict[str, Any]) -> Optional[BaseAIProvider]:
    return AIProviderFactory.create_from_config(
        config.get("providers") or {},
        config.get("provider"),
    )


# =====================================================================
#  SUBCOMMANDS
# =====================================================================

def cmd_run(args: argparse.Namespace, config: Dict[str, Any]) -> int:
    """Run the action loop for one request."""
    try:
        agent = _build_agent(config)
        session = CodingSession.from_config(config, agent, _build_projects(args, config))
        result = asyncio.run(session.run(
            args.prompt,
            project=args.project,
            skip_publish=args.skip_publish,
            force_publish=args.force,
        ))
    except (ValueError, ProjectError, ProviderNotConfiguredError) as e:
        return _error(str(e))

    _emit(result.to_dict())
    return 0 if result.success else 1


def cmd_push_staging(args: argparse.Namespace, config: Dict[str, Any]) -> int:
    """Commit and push the working tree without involving the agent."""
    try:
        session = CodingSession.from_config(config, None, _build_projects(args, config))
        result = session.push_staging(args.message, project=args.project)
    except ProjectError as e:
        return _error(str(e))
    _emit(result.to_dict())
    return 0 if result.success else 1


def cmd_retry_push(args: argparse.Namespace, config: Dict[str, Any]) -> int:
    """Force-push the local staging branch after a rejected publish."""
    try:
        session = CodingSession.from_config(config, None, _build_projects(args, config))
        result = session.retry_force_push(project=args.project)
    except ProjectError as e:
        return _error(str(e))
    _emit(result.to_dict())
    return 0 if result.success else 1


def cmd_projects(args: argparse.Namespace, config: Dict[str, Any]) -> int:
    """Create, list or delete project working copies."""
    projects = _build_projects(args, config)
    try:
        if args.projects_command == "create":
            project = projects.create(args.directory_name, args.clone_url)
            _emit({"success": True, "project": project.to_dict()})
        elif args.projects_command == "delete":
            projects.delete(args.directory_name)
            _emit({"success": True, "message": f"Project {args.directory_name} deleted"})
        else:
            _emit({
                "success": True,
                "projects": [
                    {"directory_name": p.directory_name, "exists": True}
                    for p in projects.list()
                ],
            })
    except (ProjectError, OSError) as e:
        logger.error(f"Project command failed: {e}")
        return _error(str(e))
    return 0


def cmd_doctor(args: argparse.Namespace, config: Dict[str, Any]) -> int:
    """Report workspace, provider and git health."""
    projects = _build_projects(args, config)
    providers = config.get("providers") or {}
    provider = config.get("provider") or AIProviderFactory.detect_provider(providers)
    section = (providers.get(provider) or {}) if provider else {}
    _emit({
        "status": "ok",
        "workspace": str(projects.workspace_root),
        "workspace_exists": projects.workspace_root.is_dir(),
        "provider": provider,
        "api_key_configured": bool(section.get("api_key")) or provider == "ollama",
        "git_installed": projects.git.git_installed(),
        "deployment_url": config.get("deployment_url"),
    })
    return 0


# =====================================================================
#  CLI ENTRY WITH SUBCOMMANDS
# =====================================================================

def _create_parser() -> argparse.ArgumentParser:
    """Create the main argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="stagecoder",
        description="Apply natural-language code changes and publish them to the staging branch",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  stagecoder run "Add a dark mode toggle" --project site
  stagecoder run "Fix the footer links" --skip-publish
  stagecoder retry-push --project site
  stagecoder projects create site https://github.com/acme/site.git
  stagecoder doctor
        """
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"stagecoder {__version__}"
    )
    parser.add_argument(
        "--workspace",
        type=str,
        help="Workspace root (overrides config and WORKSPACE_DIR)"
    )
    parser.add_argument(
        "--config",
        type=str,
        help="Path to config.json"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging"
    )

    subparsers = parser.add_subparsers(
        dest="command",
        help="Available commands"
    )

    # run
    parser_run = subparsers.add_parser(
        "run",
        help="Apply a change request and publish it to staging"
    )
    parser_run.add_argument("prompt", help="Natural-language description of the change")
    parser_run.add_argument("--project", help="Project directory inside the workspace")
    parser_run.add_argument(
        "--skip-publish",
        action="store_true",
        help="Apply changes on disk but do not commit or push"
    )
    parser_run.add_argument(
        "--force",
        action="store_true",
        help="Skip the pre-push pull and force-push to staging"
    )

    # push-staging
    parser_push = subparsers.add_parser(
        "push-staging",
        help="Commit and push the current working tree to staging"
    )
    parser_push.add_argument(
        "-m", "--message",
        default=MANUAL_PUSH_MESSAGE,
        help=f"Commit message seed (default: {MANUAL_PUSH_MESSAGE!r})"
    )
    parser_push.add_argument("--project", help="Project directory inside the workspace")

    # retry-push
    parser_retry = subparsers.add_parser(
        "retry-push",
        help="Force-push the local staging branch after a rejected push"
    )
    parser_retry.add_argument("--project", help="Project directory inside the workspace")

    # projects
    parser_projects = subparsers.add_parser(
        "projects",
        help="Manage project working copies"
    )
    project_commands = parser_projects.add_subparsers(dest="projects_command")
    project_commands.add_parser("list", help="List projects")
    parser_create = project_commands.add_parser("create", help="Clone a project (or reuse it)")
    parser_create.add_argument("directory_name")
    parser_create.add_argument("clone_url")
    parser_delete = project_commands.add_parser("delete", help="Delete a project directory")
    parser_delete.add_argument("directory_name")

    # doctor
    subparsers.add_parser(
        "doctor",
        help="Check workspace, provider and git configuration"
    )

    return parser


COMMANDS = {
    "run": cmd_run,
    "push-staging": cmd_push_staging,
    "retry-push": cmd_retry_push,
    "projects": cmd_projects,
    "doctor": cmd_doctor,
}


def main(argv=None) -> int:
    """Main entry point with subcommand routing."""
    parser = _create_parser()
    args = parser.parse_args(argv)

    handler = COMMANDS.get(args.command)
    if handler is None:
        parser.print_help()
        return 1

    _setup_logging(args.verbose)
    try:
        config = _load(args)
    except ValueError as e:
        return _error(str(e))
    return handler(args, config)


if __name__ == "__main__":
    sys.exit(main())
