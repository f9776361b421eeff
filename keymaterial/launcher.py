"""
Process Launcher

Runs external commands with key material exposed through their environment.
"""

import os
import subprocess
from typing import Dict, Any, List, Optional
from .material import KeyMaterial
from .errors import LaunchError
from .loggingx import get_logger

logger = get_logger(__name__)


def build_environment(material: KeyMaterial,
                      env_vars: Optional[Dict[str, str]] = None,
                      base: Optional[Dict[str, str]] = None) -> Dict[str, str]:
    """
    Build the environment for a process using key material.

    Args:
        material: Key material to expose
        env_vars: Extra variables, overridden by the material's own
        base: Starting environment, the current process environment if not provided

    Returns:
        Environment mapping
    """
    env = dict(os.environ if base is None else base)
    env.update(env_vars or {})
    env.update(material.environment())
    return env


def run_with_material(command: List[str], material: KeyMaterial,
                      env_vars: Optional[Dict[str, str]] = None,
                      timeout: Optional[float] = None,
                      capture_output: bool = True,
                      working_dir: Optional[str] = None) -> Dict[str, Any]:
    """
    Execute a command with key material in its environment.

    The material is not closed here; its owner does that.

    Args:
        command: Command and arguments
        material: Key material to expose
        env_vars: Extra environment variables
        timeout: Command timeout in seconds
        capture_output: Capture command output
        working_dir: Working directory for the command

    Returns:
        Dictionary containing command results

    Raises:
        LaunchError: If the command cannot be run or times out
    """
    if not command:
        raise LaunchError("No command given")

    env = build_environment(material, env_vars)
    material_keys = sorted(material.environment())
    command_str = ' '.join(command)

    logger.info("Executing command with key material",
                command=command_str,
                env_keys=material_keys,
                timeout=timeout)

    try:
        result = subprocess.run(
            command,
            capture_output=capture_output,
            text=True,
            timeout=timeout,
            env=env,
            cwd=working_dir,
            check=False
        )
    except subprocess.TimeoutExpired as e:
        raise LaunchError(
            f"Command timed out after {timeout} seconds",
            command=command_str,
            timeout_seconds=timeout
        ) from e
    except FileNotFoundError as e:
        raise LaunchError(
            f"Command not found: {e}",
            command=command_str
        ) from e
    except OSError as e:
        raise LaunchError(
            f"Command execution failed: {e}",
            command=command_str
        ) from e

    if result.returncode == 0:
        logger.info("Command completed successfully", return_code=result.returncode)
    else:
        logger.warning("Command completed with non-zero return code",
                       return_code=result.returncode)

    return {
        'command': command_str,
        'stdout': result.stdout if capture_output else None,
        'stderr': result.stderr if capture_output else None,
        'return_code': result.returncode,
        'env_vars': material_keys
    }
