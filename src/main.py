"""
Command-line entry point for the site configuration console.

Usage:
    python src/main.py import site.xlsx
    python src/main.py export site.xlsx --root C:/Ensight
    python src/main.py validate site.xlsx
    python src/main.py serve --workbook site.xlsx

Arguments:
    --config: Path to configuration file (layered over config/default.yaml)
"""

import argparse
import json
import logging
import os
import sys
from typing import Any, Dict, Optional, Tuple

import uvicorn

from dispatch import DirectoryWriter, PathLayout, export_site
from importer import import_summary, parse_workbook
from models.config import Config
from models.errors import ConsoleError
from ops.logging import setup_logging
from web.app import create_app
from web.services.config_service import ConfigService
from web.state import state as web_state


def load_config(config_path: str) -> Dict[str, Any]:
    """
    Load configuration with layering:
    - `config/default.yaml` (checked in)
    - `config/config.yaml` (local overrides)
    - plus any explicitly provided `--config` path (treated as overrides)
    """
    try:
        return ConfigService.load_effective_config(
            config_dir=os.path.dirname(config_path) or ".",
            explicit_path=config_path if os.path.exists(config_path) else None,
        )
    except Exception as e:
        logging.error(f"Failed to load configuration: {e}")
        sys.exit(1)


def validate_config(config: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate configuration file structure and values.

    Args:
        config: Configuration dictionary

    Returns:
        Tuple of (is_valid, error_message)
    """
    required_sections = ['paths', 'web', 'log_path', 'log_level']
    for section in required_sections:
        if section not in config:
            return False, f"Missing required configuration section: {section}"

    paths = config.get('paths') or {}
    if not isinstance(paths, dict):
        return False, "paths must be a mapping"
    if not isinstance(paths.get('root'), str) or not paths.get('root'):
        return False, "paths.root must be a non-empty string"
    for key in ('camera_hub', 'devices_config', 'fli_dir'):
        if key in paths and (not isinstance(paths[key], str) or not paths[key]):
            return False, f"paths.{key} must be a non-empty string"

    web = config.get('web') or {}
    if not isinstance(web, dict):
        return False, "web must be a mapping"
    port = web.get('port', 8080)
    if not isinstance(port, int) or isinstance(port, bool) or not (0 < port < 65536):
        return False, "web.port must be an integer between 1 and 65535"
    if 'host' in web and not isinstance(web['host'], str):
        return False, "web.host must be a string"

    if not isinstance(config['log_path'], str) or not config['log_path']:
        return False, "log_path must be a non-empty string"
    valid_log_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
    if config['log_level'] not in valid_log_levels:
        return False, f"log_level must be one of: {', '.join(valid_log_levels)}"

    return True, None


def _read_workbook(path: str) -> bytes:
    with open(path, "rb") as f:
        return f.read()


def cmd_import(args, config: Config) -> int:
    result = parse_workbook(_read_workbook(args.workbook))
    print(json.dumps({
        "sheet_names": result.sheet_names,
        "summary": import_summary(result).to_dict(),
    }, indent=2))
    return 0


def cmd_export(args, config: Config) -> int:
    result = parse_workbook(_read_workbook(args.workbook))
    if args.root:
        config.paths.root = args.root
    layout = PathLayout.from_config(config.paths)
    files = export_site(result.site, DirectoryWriter(layout))
    for f in files:
        print(f"{f.logical_path}\t{layout.resolve(f.logical_path)}")
    return 0


def cmd_validate(args, config: Config) -> int:
    result = parse_workbook(_read_workbook(args.workbook))
    findings = result.site.validate()
    for finding in findings:
        print(f"{finding.code}\t{finding.entity_id}\t{finding.message}")
    logging.info(f"Validation finished with {len(findings)} finding(s)")
    return 1 if findings and args.strict else 0


def cmd_serve(args, config: Config) -> int:
    if args.workbook:
        web_state.set_import(parse_workbook(_read_workbook(args.workbook)))
    uvicorn.run(
        create_app(),
        host=args.host or config.web.host,
        port=args.port or config.web.port,
        log_level="info",
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Parking site configuration console')
    parser.add_argument('--config', type=str, default='config/config.yaml',
                        help='Path to configuration file')
    sub = parser.add_subparsers(dest='command', required=True)

    p_import = sub.add_parser('import', help='Import a workbook and print a summary')
    p_import.add_argument('workbook', help='Site-definition workbook (.xlsx)')
    p_import.set_defaults(func=cmd_import)

    p_export = sub.add_parser('export', help='Import a workbook and write every config file')
    p_export.add_argument('workbook', help='Site-definition workbook (.xlsx)')
    p_export.add_argument('--root', type=str, default=None,
                          help='Install root (overrides paths.root)')
    p_export.set_defaults(func=cmd_export)

    p_validate = sub.add_parser('validate', help='Import a workbook and list validation findings')
    p_validate.add_argument('workbook', help='Site-definition workbook (.xlsx)')
    p_validate.add_argument('--strict', action='store_true',
                            help='Exit with status 1 when there are findings')
    p_validate.set_defaults(func=cmd_validate)

    p_serve = sub.add_parser('serve', help='Run the admin API')
    p_serve.add_argument('--workbook', type=str, default=None,
                         help='Workbook to load at startup')
    p_serve.add_argument('--host', type=str, default=None)
    p_serve.add_argument('--port', type=int, default=None)
    p_serve.set_defaults(func=cmd_serve)

    return parser


def main(argv=None) -> int:
    """Main application function."""
    args = build_parser().parse_args(argv)

    config_dict = load_config(args.config)
    is_valid, error_msg = validate_config(config_dict)
    if not is_valid:
        logging.error(f"Configuration validation failed: {error_msg}")
        return 1

    config = Config.from_dict(config_dict)
    setup_logging(config.log_path, config.log_level)
    web_state.set_config(config, args.config)

    try:
        return args.func(args, config)
    except FileNotFoundError as e:
        logging.error(f"File not found: {e}")
        return 1
    except ConsoleError as e:
        logging.error(f"{args.command} failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
