"""
CLI module for Tableau API Client.
Handles all command-line interface operations.
"""

import sys
import argparse
import time
from pathlib import Path
from typing import Callable, Optional

from tableau_client.core.config import Config, ConfigError
from tableau_client.core.logger import Logger, get_logger
from tableau_client.core.models import Datasource, Project
from tableau_client.handlers.api_client import TableauAPI
from tableau_client.handlers.dispatcher import (
    APIError,
    DoesNotExistError,
    ResourceNotFoundError,
    ServerError,
    TransportError,
)
from tableau_client.handlers.multipart import MultipartError
from tableau_client.handlers.xml_transformer import XMLTransformError
from tableau_client.utils.files import (
    DatasourceFileError,
    datasource_type_for,
    format_duration,
    read_datasource_file,
)


# Exit codes
EXIT_SUCCESS = 0
EXIT_CONFIG_ERROR = 1
EXIT_AUTH_ERROR = 2
EXIT_API_ERROR = 3
EXIT_NETWORK_ERROR = 4
EXIT_NOT_FOUND = 5


def exit_code_for(error: Exception) -> int:
    """Map an exception raised by a command onto a process exit code."""
    if isinstance(error, (DoesNotExistError, ResourceNotFoundError)):
        return EXIT_NOT_FOUND
    if isinstance(error, TransportError):
        return EXIT_NETWORK_ERROR
    if isinstance(error, ServerError) and error.status_code in (401, 403):
        return EXIT_AUTH_ERROR
    if isinstance(error, (APIError, XMLTransformError, MultipartError, ValueError)):
        return EXIT_API_ERROR
    return EXIT_CONFIG_ERROR


class TableauClientApp:
    """Main application controller."""

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize the application.

        Args:
            config_path: Optional path to config file
        """
        try:
            self.config = Config(config_path)
        except ConfigError as e:
            print(f"Configuration Error: {e}", file=sys.stderr)
            sys.exit(EXIT_CONFIG_ERROR)

        try:
            Logger.initialize(
                self.config.log_file,
                self.config.log_level,
                self.config.log_max_size_mb,
                self.config.log_backup_count
            )
            self.logger = get_logger()

            self.logger.debug("=" * 70)
            self.logger.debug("Tableau API Client Starting")
            self.logger.debug(f"Server: {self.config.server_url} (API {self.config.api_version})")
            self.logger.debug("=" * 70)
        except OSError as e:
            print(f"Logger Initialization Error: {e}", file=sys.stderr)
            sys.exit(EXIT_CONFIG_ERROR)

        self.api = TableauAPI.from_config(self.config)

    def run(self, command: Callable[[TableauAPI], int], sign_in: bool = True) -> int:
        """
        Run a command, signing in before and out after when needed.

        Args:
            command: Callable receiving the API client and returning an exit code
            sign_in: Whether the command needs an authenticated session

        Returns:
            Exit code
        """
        start_time = time.time()
        try:
            if sign_in:
                self.api.signin(
                    self.config.username,
                    self.config.password,
                    self.config.site,
                    self.config.impersonate_user_id,
                )
            try:
                return command(self.api)
            finally:
                if sign_in:
                    self._signout()
        except (APIError, XMLTransformError, MultipartError, ValueError,
                DatasourceFileError) as e:
            self.logger.error(f"{type(e).__name__}: {e}")
            print(f"Error: {e}", file=sys.stderr)
            return exit_code_for(e)
        finally:
            self.logger.debug(f"Finished in {format_duration(time.time() - start_time)}")
            self.api.close()

    def _signout(self):
        try:
            self.api.signout()
        except (APIError, XMLTransformError) as e:
            self.logger.warning(f"Sign-out failed: {e}")


def _site_id(api: TableauAPI) -> str:
    return api.session.site_id


def cmd_validate(args, app: TableauClientApp) -> int:
    """Handle the 'validate' command."""
    print("Validating configuration...")
    print(f"✓ Configuration loaded successfully")
    print(f"✓ Server: {app.config.server_url}")
    print(f"✓ API version: {app.config.api_version}")
    print(f"✓ Site: {app.config.site or app.config.default_site_name}")

    def check(api: TableauAPI) -> int:
        print(f"✓ Signed in as {app.config.username} (site id {api.session.site_id})")
        return EXIT_SUCCESS

    code = app.run(check)
    if code == EXIT_SUCCESS:
        print("\n✓ All validations passed")
    else:
        print("\n✗ Sign-in failed")
    return code


def cmd_serverinfo(args, app: TableauClientApp) -> int:
    """Handle the 'serverinfo' command."""
    def show(api: TableauAPI) -> int:
        info = api.server_info()
        print(f"Product version: {info.product_version} (build {info.build})")
        print(f"REST API version: {info.rest_api_version}")
        return EXIT_SUCCESS

    return app.run(show, sign_in=False)


def cmd_sites(args, app: TableauClientApp) -> int:
    """Handle the 'sites' command."""
    def show(api: TableauAPI) -> int:
        for site in api.query_sites():
            print(f"{site.id}\t{site.name}\t{site.content_url or ''}\t{site.state or ''}")
        return EXIT_SUCCESS

    return app.run(show)


def cmd_projects(args, app: TableauClientApp) -> int:
    """Handle the 'projects' command."""
    def show(api: TableauAPI) -> int:
        if args.name:
            projects = [api.get_project_by_name(_site_id(api), args.name)]
        else:
            projects = api.query_projects(_site_id(api))
        for project in projects:
            print(f"{project.id}\t{project.name}\t{project.description or ''}")
        return EXIT_SUCCESS

    return app.run(show)


def cmd_datasources(args, app: TableauClientApp) -> int:
    """Handle the 'datasources' command."""
    def show(api: TableauAPI) -> int:
        for datasource in api.query_datasources(_site_id(api)):
            print(
                f"{datasource.id}\t{datasource.name}\t{datasource.type or ''}\t"
                f"{datasource.project_name or ''}"
            )
        return EXIT_SUCCESS

    return app.run(show)


def cmd_create_project(args, app: TableauClientApp) -> int:
    """Handle the 'create-project' command."""
    def create(api: TableauAPI) -> int:
        project = api.create_project(
            _site_id(api),
            Project(name=args.name, description=args.description),
        )
        print(f"✓ Created project {project.name} ({project.id})")
        return EXIT_SUCCESS

    return app.run(create)


def cmd_publish(args, app: TableauClientApp) -> int:
    """Handle the 'publish' command."""
    input_file = Path(args.file)

    def publish(api: TableauAPI) -> int:
        start_time = time.time()
        content = read_datasource_file(input_file)
        name = args.name or input_file.stem

        project_id = None
        if args.project:
            project_id = api.get_project_by_name(_site_id(api), args.project).id

        datasource = api.publish_datasource(
            _site_id(api),
            Datasource(name=name, project_id=project_id),
            content,
            datasource_type_for(input_file),
            overwrite=args.overwrite,
        )
        print(f"✓ Published datasource {datasource.name} ({datasource.id})")
        print(f"  Duration: {format_duration(time.time() - start_time)}")
        return EXIT_SUCCESS

    return app.run(publish)


def cmd_delete_site(args, app: TableauClientApp) -> int:
    """Handle the 'delete-site' command."""
    def delete(api: TableauAPI) -> int:
        if args.id:
            api.delete_site(args.id)
        elif args.name:
            api.delete_site_by_name(args.name)
        else:
            api.delete_site_by_content_url(args.content_url)
        print("✓ Site deleted")
        return EXIT_SUCCESS

    return app.run(delete)


def cmd_delete_project(args, app: TableauClientApp) -> int:
    """Handle the 'delete-project' command."""
    def delete(api: TableauAPI) -> int:
        project_id = args.id or api.get_project_by_name(_site_id(api), args.name).id
        api.delete_project(_site_id(api), project_id)
        print(f"✓ Project {project_id} deleted")
        return EXIT_SUCCESS

    return app.run(delete)


def cmd_delete_datasource(args, app: TableauClientApp) -> int:
    """Handle the 'delete-datasource' command."""
    def delete(api: TableauAPI) -> int:
        datasource_id = args.id or api.get_datasource_by_name(_site_id(api), args.name).id
        api.delete_datasource(_site_id(api), datasource_id)
        print(f"✓ Datasource {datasource_id} deleted")
        return EXIT_SUCCESS

    return app.run(delete)


COMMANDS = {
    'validate': cmd_validate,
    'serverinfo': cmd_serverinfo,
    'sites': cmd_sites,
    'projects': cmd_projects,
    'datasources': cmd_datasources,
    'create-project': cmd_create_project,
    'publish': cmd_publish,
    'delete-site': cmd_delete_site,
    'delete-project': cmd_delete_project,
    'delete-datasource': cmd_delete_datasource,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Tableau API Client - Tableau Server REST API from the command line',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Examples:
  # Check configuration and credentials
  %(prog)s validate

  # List projects on the configured site
  %(prog)s projects

  # Publish a datasource into a project
  %(prog)s publish --file "Sales Data.tds" --project Finance --overwrite

  # Delete a site by content URL
  %(prog)s delete-site --content-url marketing
        '''
    )

    parser.add_argument(
        '--config',
        help='Path to configuration file (default: config/config.yaml)',
        default=None
    )

    subparsers = parser.add_subparsers(dest='command', help='Command to execute')

    subparsers.add_parser('validate', help='Validate configuration and sign-in')
    subparsers.add_parser('serverinfo', help='Show server version information')
    subparsers.add_parser('sites', help='List sites (server administrators only)')

    projects_parser = subparsers.add_parser('projects', help='List projects on the site')
    projects_parser.add_argument('--name', help='Show only the project with this name')

    subparsers.add_parser('datasources', help='List datasources on the site')

    create_parser = subparsers.add_parser('create-project', help='Create a project')
    create_parser.add_argument('--name', required=True, help='Project name')
    create_parser.add_argument('--description', default=None, help='Project description')

    publish_parser = subparsers.add_parser('publish', help='Publish a datasource file')
    publish_parser.add_argument('--file', '-f', required=True, help='.tds/.tdsx/.hyper file to publish')
    publish_parser.add_argument('--name', help='Datasource name (default: file name)')
    publish_parser.add_argument('--project', help='Target project name (default: server default)')
    publish_parser.add_argument(
        '--overwrite',
        action='store_true',
        help='Replace an existing datasource with the same name'
    )

    delete_site_parser = subparsers.add_parser('delete-site', help='Delete a site')
    site_group = delete_site_parser.add_mutually_exclusive_group(required=True)
    site_group.add_argument('--id', help='Site id')
    site_group.add_argument('--name', help='Site name')
    site_group.add_argument('--content-url', help='Site content URL')

    for command, noun in (('delete-project', 'project'), ('delete-datasource', 'datasource')):
        delete_parser = subparsers.add_parser(command, help=f'Delete a {noun} on the site')
        group = delete_parser.add_mutually_exclusive_group(required=True)
        group.add_argument('--id', help=f'{noun.capitalize()} id')
        group.add_argument('--name', help=f'{noun.capitalize()} name')

    return parser


def main(argv=None):
    """Main entry point for CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return EXIT_CONFIG_ERROR

    try:
        app = TableauClientApp(args.config)
    except SystemExit as e:
        return e.code

    return COMMANDS[args.command](args, app)


if __name__ == '__main__':
    sys.exit(main())
