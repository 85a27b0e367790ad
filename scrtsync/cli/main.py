"""CLI entrypoint for scrtsync."""
import sys
import argparse
import logging

from scrtsync.secrets.domains.config_loader import DEFAULT_CONFIG, load_config
from scrtsync.secrets.domains.errors import NoSourceProvidedError
from scrtsync.secrets.workflows.jobs import new_job

VERSION = "0.1.0"

logger = logging.getLogger(__name__)


def _configure_logging(verbose: bool) -> None:
    """Send logs to stderr so stdout stays clean for piped secrets."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        stream=sys.stderr,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="scrtsync",
        description="Synchronize secrets between different sources",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Sources:
  file://<path>                     dotenv-style file, e.g. file://.env
  std://                            stdin / stdout
  k8s://<context>/<secret-name>     Kubernetes Secret (also kubernetes://),
                                    optional ?namespace=<namespace>
  vault://<mount>/<secret-path>     Vault KV v2 secret

Piping into scrtsync reads from std://, piping out of it writes to std://.

Exit codes:
  0 - Success
  1 - Runtime error (invalid source, read or write failure, bad config, etc.)
  2 - Usage error (invalid arguments, no source given)

Environment variables:
  SCRTSYNC_CONFIG - Config file path (overridden by --config)
  VAULT_ADDR, VAULT_TOKEN, VAULT_NAMESPACE - Vault connection
  KUBECONFIG - Kubernetes config file

Configuration:
  Presets are read from {DEFAULT_CONFIG} in the working directory.
  Run 'scrtsync init' to create an example config.
        """
    )
    parser.add_argument(
        "-c", "--config",
        help=f"Config file to use for presets (default: {DEFAULT_CONFIG})"
    )
    parser.add_argument(
        "-f", "--from",
        dest="from_uri",
        metavar="FROM",
        help="From where to pull secrets"
    )
    parser.add_argument(
        "-t", "--to",
        dest="to_uri",
        metavar="TO",
        help="To where to output secrets"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log debug information to stderr (never secret values)"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"scrtsync {VERSION}"
    )
    parser.add_argument(
        "preset",
        nargs="?",
        help="An optional preset defined in the config file, or 'init' to create one"
    )
    return parser


def main(argv=None):
    """Main CLI entrypoint.

    Exit codes:
        0 - Success
        1 - Runtime errors (invalid source, read or write failure, bad config, etc.)
        2 - Usage errors (invalid arguments, no source provided)
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)
    logger.debug(f"scrtsync {VERSION}")

    try:
        config = load_config(args.config)
        job = new_job(config, args.from_uri, args.to_uri, args.preset)
        job.run()
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        sys.exit(1)
    except NoSourceProvidedError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    sys.exit(0)


if __name__ == "__main__":
    main()
