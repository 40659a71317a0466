"""CLI entry point for jofsync.

Loads ~/.jofsync.yaml, applies command-line overrides, and runs both sync
passes once. Intended to be run by hand or from launchd/cron.
"""

from __future__ import annotations

import sys
from pathlib import Path

import click

from jofsync import __version__
from jofsync.config import (
    AuthenticationError,
    ConfigurationError,
    apply_overrides,
    build_config,
    load_settings,
)
from jofsync.jira import JiraClient, JiraError
from jofsync.logging import get_logger, sanitize_for_log, setup_logging
from jofsync.notify import Notifier
from jofsync.omnifocus import AutomationError, OmniFocusStore
from jofsync.sync import Reconciler

logger = get_logger("cli")


@click.command(context_settings={"help_option_names": ["--help"]})
@click.version_option(__version__, prog_name="jofsync")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Path to the config file (default: ~/.jofsync.yaml)",
)
@click.option("-k", "--usekeychain/--no-usekeychain", default=None, help="Use Keychain for Jira")
@click.option("-u", "--username", default=None, help="Jira Username")
@click.option("-p", "--password", default=None, help="Jira Password")
@click.option("-h", "--hostname", default=None, help="Jira Server Hostname")
@click.option("-j", "--filter", "jql", default=None, help="JQL Filter")
@click.option(
    "-s", "--ssl-verify/--no-ssl-verify", "ssl_verify", default=None, help="SSL verification"
)
@click.option("-c", "--tag", default=None, help="OF Default Tag")
@click.option("-r", "--project", default=None, help="OF Default Project")
@click.option("-f", "--flag/--no-flag", default=None, help="Flag tasks in OF")
@click.option("-o", "--folder", default=None, help="OF Default Folder")
@click.option("-i", "--inbox/--no-inbox", default=None, help="Create inbox tasks")
@click.option("-n", "--newproj/--no-newproj", default=None, help="Create as projects")
@click.option("-d", "--descsync/--no-descsync", default=None, help="Sync Description to Notes")
@click.option("--notify/--no-notify", default=None, help="Send desktop notifications")
@click.option("-q", "--quiet/--no-quiet", default=True, help="Only print errors")
@click.option("--debug", is_flag=True, help="Enable debug output")
@click.option(
    "--log-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory for log files (default: ~/.jofsync/logs)",
)
def main(
    config_path: Path | None,
    usekeychain: bool | None,
    username: str | None,
    password: str | None,
    hostname: str | None,
    jql: str | None,
    ssl_verify: bool | None,
    tag: str | None,
    project: str | None,
    flag: bool | None,
    folder: str | None,
    inbox: bool | None,
    newproj: bool | None,
    descsync: bool | None,
    notify: bool | None,
    quiet: bool,
    debug: bool,
    log_dir: Path | None,
) -> None:
    """Jira OmniFocus Sync Tool.

    Creates OmniFocus tasks for open JIRA tickets, and completes or removes
    them once the ticket is resolved, unassigned, or reassigned.
    """
    overrides = {
        "usekeychain": usekeychain,
        "username": username,
        "password": password,
        "hostname": hostname,
        "filter": jql,
        "ssl_verify": ssl_verify,
        "tag": tag,
        "project": project,
        "flag": flag,
        "folder": folder,
        "inbox": inbox,
        "newproj": newproj,
        "descsync": descsync,
        "notify": notify,
    }

    try:
        settings = apply_overrides(load_settings(config_path), overrides)
        config, credentials = build_config(settings)
    except ConfigurationError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)
    except AuthenticationError as e:
        click.echo(f"Authentication error: {e}", err=True)
        sys.exit(1)

    setup_logging(log_dir=log_dir, level="DEBUG" if debug else None, quiet=quiet and not debug)
    logger.info("Starting JIRA-OmniFocus sync")
    logger.debug("Configuration: %r", config)

    jira = JiraClient(
        config.hostname,
        credentials.username,
        credentials.password,
        ssl_verify=config.ssl_verify,
    )
    notifier = Notifier(enabled=config.notify)
    reconciler = Reconciler(
        config=config,
        issue_source=jira,
        task_store=OmniFocusStore(config.hostname),
        notifier=notifier,
    )

    try:
        report = reconciler.run()
    except (JiraError, AutomationError) as e:
        message = sanitize_for_log(str(e))
        logger.error("Sync failed: %s", message)
        logger.debug("Failure details", exc_info=True)
        notifier.notify("sync_failed", "Sync failed", message)
        sys.exit(1)
    finally:
        jira.close()

    if report.failed:
        logger.error("Sync finished with %d error(s): %s", len(report.errors), report.summary())
        sys.exit(1)

    logger.info("Sync completed successfully: %s", report.summary())


if __name__ == "__main__":
    main()
