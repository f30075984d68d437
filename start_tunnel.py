"""Start a cloudflared tunnel configured from a local .env file."""

from __future__ import annotations

import logging
import subprocess
import sys
from typing import Mapping, MutableMapping, Sequence

from env_utils import TunnelLauncherError, get_required_env, load_env_file

ENV_FILE = ".env"
TUNNEL_EXECUTABLE = "cloudflared"
REQUIRED_VARIABLES = ("ORIGIN_CERT", "TUNNEL_ID", "CONFIG", "LOG_LEVEL")


class ExecReplacementError(TunnelLauncherError):
    """Raised when the tunnel executable cannot be started."""


def build_tunnel_args(
    config: str,
    log_level: str,
    tunnel_id: str,
    executable: str = TUNNEL_EXECUTABLE,
) -> list[str]:
    return [
        executable,
        "tunnel",
        "--config",
        config,
        "--loglevel",
        log_level,
        "run",
        tunnel_id,
    ]


def spawn_tunnel(argv: Sequence[str], env: Mapping[str, str]) -> subprocess.Popen:
    """Start ``argv`` from ``PATH`` with exactly ``env`` and do not wait for it."""

    try:
        return subprocess.Popen(list(argv), env=dict(env))
    except OSError as exc:
        raise ExecReplacementError(
            f"Failed to start {argv[0]}: {exc.strerror or exc}"
        ) from exc


def run(
    env_file: str = ENV_FILE,
    environ: MutableMapping[str, str] | None = None,
) -> int:
    """Load ``env_file``, validate it and hand off to the tunnel executable.

    ORIGIN_CERT is not part of the argument vector; the child reads it from
    the environment it inherits.
    """

    env = load_env_file(env_file, environ)
    required = get_required_env(REQUIRED_VARIABLES, env)

    argv = build_tunnel_args(
        required["CONFIG"],
        required["LOG_LEVEL"],
        required["TUNNEL_ID"],
    )
    process = spawn_tunnel(argv, env)
    logging.info("Started %s tunnel %s (pid=%s)", argv[0], required["TUNNEL_ID"], process.pid)
    return 0


def main() -> int:
    logging.basicConfig(level=logging.INFO, format="[%(asctime)s] %(levelname)s %(message)s")

    try:
        return run()
    except TunnelLauncherError as exc:
        logging.error("%s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
