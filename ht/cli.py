"""ht CLI - a friendly command-line HTTP client."""

import sys

import click

from ht.auth import AUTH_BASIC, AUTH_TYPES, auth_from_config, resolve_auth
from ht.errors import HtError
from ht.printing import PRETTY_CHOICES, PrintPolicyType

HTTP_METHODS = ("GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "TRACE", "CONNECT")

TOOL_HELP = """\
ht - a friendly command-line HTTP client.

\b
USAGE
─────
  ht [METHOD] URL [REQUEST_ITEM ...]

  METHOD defaults to GET, or POST when there is a body to send.
  URL may omit the scheme (--default-scheme, default http):
    ht example.com/api          -> http://example.com/api
    ht :3000/users              -> http://localhost:3000/users

\b
REQUEST ITEMS
─────────────
  Name:Value      request header           X-Api-Key:abc
  Name:           remove a header          Accept-Encoding:
  Name;           header with empty value  X-Empty;
  name==value     query parameter          q==search
  field=value     string field             name=bob
  field:=json     typed JSON field         age:=30 tags:='["a","b"]'
  field@path      file upload (multipart)  avatar@photo.jpg

  Fields are sent as a JSON object by default, as a urlencoded form
  with --form, or as multipart/form-data with --multipart.
  A body can also be piped on stdin; it cannot be mixed with fields.

\b
OUTPUT
──────
  --print takes any of H (request headers), B (request body),
  h (response headers), b (response body).
  Default: hb on a terminal, b when piped; --verbose prints everything.

\b
CONFIG FILE FORMAT (.ht.yaml)
─────────────────────────────
  Config resolution order:
    1. -c/--config flag (explicit path)
    2. .ht.yaml / .ht.yml / ht.yaml / ht.yml in CWD
    3. ~/.ht/config.yaml (global)

  \b
  defaults:
    default_scheme: https
    timeout: 30                     # seconds
    env_file: .env                  # load .env file
    pretty: format
    headers:
      X-Client: ${CLIENT_ID}        # env var resolved at runtime
    auth:
      type: bearer                  # bearer | basic
      token: ${API_TOKEN}
"""


@click.command(
    cls=click.Command,
    help=TOOL_HELP,
    context_settings={"max_content_width": 88},
)
@click.argument("args", nargs=-1, required=True, metavar="[METHOD] URL [REQUEST_ITEM]...")
@click.option(
    "-f",
    "--form",
    is_flag=True,
    default=False,
    help="Send data fields as application/x-www-form-urlencoded.",
)
@click.option(
    "--multipart",
    is_flag=True,
    default=False,
    help="Send data and file fields as multipart/form-data.",
)
@click.option(
    "-a",
    "--auth",
    default=None,
    metavar="USER[:PASS]|TOKEN",
    help="Credentials. Prompts for the password if it is omitted on a terminal.",
)
@click.option(
    "-A",
    "--auth-type",
    type=click.Choice(AUTH_TYPES, case_sensitive=False),
    default=None,
    help="Authentication scheme. Default: basic.",
)
@click.option(
    "-I",
    "--ignore-stdin",
    is_flag=True,
    default=False,
    help="Do not read a request body from stdin.",
)
@click.option(
    "--offline",
    is_flag=True,
    default=False,
    help="Build and print the request without sending it.",
)
@click.option(
    "-d",
    "--download",
    is_flag=True,
    default=False,
    help="Save the response body to a file instead of printing it.",
)
@click.option(
    "-o",
    "--output",
    default=None,
    metavar="FILE",
    help="Download target. Implies --download.",
)
@click.option(
    "-v",
    "--verbose",
    is_flag=True,
    default=False,
    help="Print the whole request and response.",
)
@click.option(
    "-p",
    "--print",
    "print_policy",
    type=PrintPolicyType(),
    default=None,
    metavar="WHAT",
    help="Parts to print: H request headers, B request body, h response headers, b response body.",
)
@click.option(
    "--pretty",
    type=click.Choice(PRETTY_CHOICES),
    default=None,
    help="Output processing. Default: all on a terminal, none when piped.",
)
@click.option(
    "--default-scheme",
    default=None,
    help="Scheme used when the URL has none. Default: http.",
)
@click.option(
    "--timeout",
    type=click.IntRange(min=1),
    default=None,
    help="Request timeout in seconds. Default: 30.",
)
@click.option(
    "-c",
    "--config",
    "config_file",
    default=None,
    help="Config file path. Default: .ht.yaml in CWD, then ~/.ht/config.yaml.",
)
def main(
    args,
    form,
    multipart,
    auth,
    auth_type,
    ignore_stdin,
    offline,
    download,
    output,
    verbose,
    print_policy,
    pretty,
    default_scheme,
    timeout,
    config_file,
):
    """Build, send and print one HTTP request."""
    from ht.core import load_config, load_env, resolve_config_path

    method, url, raw_items = _split_args(args)

    try:
        # --- Load config ---
        config = load_config(resolve_config_path(config_file))
        defaults = config.get("defaults", {})
        env = load_env(defaults.get("env_file"), config.get("_config_dir") or ".")

        _cmd_request(
            method,
            url,
            raw_items,
            form=form,
            multipart=multipart,
            auth=auth,
            auth_type=auth_type,
            ignore_stdin=ignore_stdin,
            offline=offline,
            download=download or output is not None,
            output=output,
            verbose=verbose,
            print_policy=print_policy,
            pretty=pretty,
            default_scheme=default_scheme,
            timeout=timeout,
            defaults=defaults,
            env=env,
        )
    except HtError as e:
        click.echo(f"ERROR: {e}", err=True)
        sys.exit(1)


# ── Request pipeline ─────────────────────────────────────────────────────


def _cmd_request(
    method,
    url,
    raw_items,
    form,
    multipart,
    auth,
    auth_type,
    ignore_stdin,
    offline,
    download,
    output,
    verbose,
    print_policy,
    pretty,
    default_scheme,
    timeout,
    defaults,
    env,
):
    from ht.assembler import assemble, infer_method
    from ht.body import body_from_stdin, resolve_body
    from ht.core import DEFAULT_TIMEOUT, resolve_headers, resolve_setting
    from ht.executor import download_file, send_request
    from ht.items import RequestItems
    from ht.printing import Printer, resolve_print_policy
    from ht.url import DEFAULT_SCHEME, Url

    stdout_tty = _stdout_is_tty()

    # Resolve everything before anything is printed or sent
    items = RequestItems.parse(raw_items)
    scheme = resolve_setting(default_scheme, defaults.get("default_scheme"), default=DEFAULT_SCHEME)
    target = Url.parse(url, scheme)
    stdin_body = body_from_stdin(sys.stdin, ignore_stdin)
    body = resolve_body(items.body_items(), stdin_body, form=form, multipart=multipart)
    method = infer_method(method, body)
    credentials = _resolve_auth(auth, auth_type, defaults, env)

    request = assemble(
        method,
        target,
        items,
        body=body,
        auth=credentials,
        base_headers=resolve_headers(defaults.get("headers"), env),
    )
    prepared = request.prepare()

    policy = resolve_print_policy(print_policy, verbose, stdout_tty)
    printer = Printer(
        resolve_setting(pretty, defaults.get("pretty"), default="all" if stdout_tty else "none"),
    )

    if policy.request_headers:
        printer.print_request_headers(prepared)
    if policy.request_body:
        printer.print_request_body(prepared)
    if offline:
        return

    response = send_request(
        prepared,
        timeout=resolve_setting(timeout, defaults.get("timeout"), default=DEFAULT_TIMEOUT),
    )
    try:
        if policy.response_headers:
            printer.print_response_headers(response)
        if download:
            path = download_file(response, output)
            click.echo(f"Saved to {path}", err=True)
        elif policy.response_body:
            printer.print_response_body(response)
    finally:
        response.close()


# ── Helpers ──────────────────────────────────────────────────────────────


def _split_args(args):
    """Split positionals into (method, url, request_items).

    The first positional is a METHOD only when it names one and a URL follows.
    """
    args = list(args)
    method = None
    if len(args) >= 2 and args[0].upper() in HTTP_METHODS:
        method = args.pop(0).upper()
    url = args.pop(0) if args else None
    return method, url, args


def _resolve_auth(auth, auth_type, defaults, env):
    """--auth wins over the config file's auth block."""
    if auth is None:
        return auth_from_config(defaults.get("auth"), env)
    if (auth_type or AUTH_BASIC).lower() == AUTH_BASIC and ":" not in auth and _stdin_is_tty():
        password = click.prompt(
            f"ht: password for {auth}",
            hide_input=True,
            default="",
            show_default=False,
        )
        auth = f"{auth}:{password}"
    return resolve_auth(auth, auth_type)


def _stdout_is_tty():
    return sys.stdout.isatty()


def _stdin_is_tty():
    return sys.stdin.isatty()
