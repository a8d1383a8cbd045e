"""
PHP's built-in web server for local development
"""

import subprocess

from wp_tasks.config import ProjectProperties
from wp_tasks.utils.process import spawn_detached

DEFAULT_PORT = 8088


def start_server(properties: ProjectProperties, port: int = DEFAULT_PORT, host: str = "localhost") -> subprocess.Popen:
    """
    Starts `php -S` serving the web root in the background

    The server is detached and never waited for; stop it yourself.

    Returns:
        subprocess.Popen: Handle of the server process
    """
    process = spawn_detached(
        "php",
        ["-S", f"{host}:{port}", "-t", str(properties.web_root)],
        cwd=properties.working_dir,
    )
    print(f"✅ Serving {properties.web_root} at http://{host}:{port} (pid {process.pid})")
    return process
