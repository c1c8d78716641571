import click

from polar_toolkit.clients.polar import REGISTER_STATUS_ALREADY_REGISTERED, USER_INFO_STATUS_NO_DATA
from polar_toolkit.config import Config, PolarSettings
from polar_toolkit.exceptions import AuthenticationError, ConfigurationError, PolarError
from polar_toolkit.logger import get_logger
from polar_toolkit.services.account import AccountService
from polar_toolkit.services.auth import AuthService
from polar_toolkit.services.download import (
    DownloadService,
    DAY_STATUS_ALREADY_PRESENT,
    DAY_STATUS_DOWNLOADED,
    DAY_STATUS_NO_DATA,
)


def info(message):
    click.secho(message, fg='blue')


def success(message):
    click.secho(message, fg='green')


def warn(message):
    click.secho(message, fg='yellow')


def error(message):
    click.secho(message, fg='red', err=True)


def _resolve_code(settings, code):
    auth_code = code or settings.auth_code
    if not auth_code:
        error("Error: Authorization code required (--code or AUTH_CODE env var)")
        raise click.Abort()
    if not code:
        info("Using authorization code from AUTH_CODE environment variable")
    return auth_code


def _fail(e):
    if isinstance(e, ConfigurationError):
        error(f"Error: {e}")
        error("Set CLIENT_ID, CLIENT_SECRET and MEMBER_ID in the environment or a .env file")
    elif isinstance(e, AuthenticationError):
        error(f"{e}")
        if e.result is not None and e.result.body:
            error(f"Response: {e.result.body}")
    else:
        error(f"Error: {e}")
    raise click.Abort()


@click.group()
@click.option('--verbose', '-v', is_flag=True, help='Echo log records to the console')
@click.pass_context
def cli(ctx, verbose):
    """Download Polar continuous heart rate data for the last 30 days."""
    ctx.ensure_object(dict)
    ctx.obj['settings'] = PolarSettings.from_env()
    ctx.obj['logger'] = get_logger(verbose=verbose)


@cli.group()
def config():
    """Inspect the configuration."""
    pass


@config.command('show')
@click.pass_context
def show_config(ctx):
    """Show the configuration loaded from the environment."""
    settings = ctx.obj['settings']
    try:
        settings.validate()
    except ConfigurationError as e:
        _fail(e)

    info("Configuration loaded from environment:")
    for name, value in settings.masked().items():
        click.echo(f"  {name}: {value}")
    click.echo(f"  OUTPUT_DIR: {Config.OUTPUT_DIR}")
    click.echo(f"  LOG_FILE: {Config.LOG_FILE}")


@cli.command()
@click.pass_context
def authorize(ctx):
    """Open the OAuth2 authorization page to get an authorization code."""
    service = AuthService(ctx.obj['settings'])
    try:
        url, opened = service.open_authorization_url()
    except ConfigurationError as e:
        _fail(e)

    info("Opening OAuth2 authorization URL in browser...")
    success(f"URL: {url}")
    if opened:
        success("URL opened in browser")
    else:
        warn("Could not automatically open browser; open the URL above manually")

    click.echo("")
    info("Next steps:")
    click.echo("  1. Authorize the application in your browser")
    click.echo("  2. Copy the authorization code from the callback URL")
    click.echo("  3. Run: polar-toolkit download --code <authorization_code>")


@cli.command()
@click.argument('member_id', required=False)
@click.option('--code', '-c', help='Authorization code (default: AUTH_CODE)')
@click.pass_context
def register(ctx, member_id, code):
    """Register a member id (default: MEMBER_ID) with AccessLink."""
    settings = ctx.obj['settings']
    auth_code = _resolve_code(settings, code)
    member_id = member_id or settings.member_id

    info(f"Registering user with ID: {member_id or '(not set)'}...")
    service = AccountService(settings)
    try:
        result = service.register(auth_code, member_id)
    except PolarError as e:
        _fail(e)

    if result.status == REGISTER_STATUS_ALREADY_REGISTERED:
        warn(f"User already registered: {result.member_id}")
    else:
        success(f"User registration successful: {result.member_id}")


@cli.command('user-info')
@click.option('--code', '-c', help='Authorization code (default: AUTH_CODE)')
@click.pass_context
def user_info(ctx, code):
    """Show the profile of the configured member."""
    settings = ctx.obj['settings']
    auth_code = _resolve_code(settings, code)

    info(f"Fetching user information for ID: {settings.member_id or '(not set)'}...")
    service = AccountService(settings)
    try:
        result = service.fetch_user_info(auth_code)
    except PolarError as e:
        _fail(e)

    if result.status == USER_INFO_STATUS_NO_DATA:
        warn(f"No user information found for {result.member_id}")
        return

    user = result.user_info

    def show(value, unit=''):
        return 'N/A' if value is None else f"{value}{unit}"

    success("User information retrieved successfully!")
    click.echo(f"  Polar User ID: {show(user.polar_user_id)}")
    click.echo(f"  Member ID: {show(user.member_id)}")
    click.echo(f"  Name: {show(user.first_name)} {show(user.last_name)}")
    click.echo(f"  Birth Date: {show(user.birthdate)}")
    click.echo(f"  Gender: {show(user.gender)}")
    click.echo(f"  Weight: {show(user.weight, ' kg')}")
    click.echo(f"  Height: {show(user.height, ' cm')}")


def _echo_day(result):
    if result.status == DAY_STATUS_DOWNLOADED:
        success(f"Downloaded {result.date_key}")
    elif result.status == DAY_STATUS_ALREADY_PRESENT:
        warn(f"Skipping {result.date_key} (file already exists)")
    elif result.status == DAY_STATUS_NO_DATA:
        warn(f"No data available for {result.date_key}")
    else:
        reason = f"HTTP {result.http_status}" if result.http_status else result.error
        error(f"Failed to download {result.date_key} ({reason})")


@cli.command()
@click.option('--code', '-c', help='Authorization code (default: AUTH_CODE)')
@click.option('--output-dir', type=click.Path(file_okay=False), help=f'Directory for JSON files (default: {Config.OUTPUT_DIR})')
@click.pass_context
def download(ctx, code, output_dir):
    """Download continuous heart rate data for the last 30 days."""
    settings = ctx.obj['settings']
    auth_code = _resolve_code(settings, code)

    info(f"Starting Polar heart rate download for the last {Config.DAYS_TO_DOWNLOAD} days")
    service = DownloadService(settings, output_dir=output_dir)
    try:
        tally = service.run(auth_code, on_result=_echo_day)
    except PolarError as e:
        _fail(e)

    click.echo("\nDownload Summary:")
    success(f"  Downloaded: {tally.downloaded}")
    warn(f"  Skipped (already present): {tally.already_present}")
    warn(f"  Skipped (no data): {tally.no_data}")
    click.secho(f"  Failed: {tally.failed}", fg='red' if tally.failed else None)

    if not tally.succeeded:
        warn(f"Some downloads failed. Check {Config.LOG_FILE} for details.")
        ctx.exit(1)
    success("All downloads completed successfully!")


def main():
    """Entry point for the CLI."""
    cli()


if __name__ == '__main__':
    main()
