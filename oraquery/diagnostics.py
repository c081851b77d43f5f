"""Network reachability check for the connect form's diagnose button."""
import asyncio
import logging
import sys
from dataclasses import dataclass, field
from typing import List, Optional

logger = logging.getLogger(__name__)

REACHABLE = "Host reachable - the problem may be the port or the Oracle configuration"
UNREACHABLE = "Host unreachable - check the hostname/IP and network connectivity"
TIMED_OUT = "Ping timed out - check network connectivity"
PING_FAILED = "Error running ping"


@dataclass
class PingResult:
    success: bool
    output: str
    suggestions: List[str] = field(default_factory=list)


def ping_command(hostname: str, platform: Optional[str] = None) -> List[str]:
    platform = platform or sys.platform
    count_flag = "-n" if platform == "win32" else "-c"
    return ["ping", count_flag, "1", hostname]


async def ping_host(hostname: str, timeout: float = 5.0) -> PingResult:
    """Ping ``hostname`` once; the process is killed after ``timeout`` seconds."""
    if not hostname or hostname.startswith("-"):
        return PingResult(False, f"Invalid hostname: {hostname!r}", [PING_FAILED])

    try:
        process = await asyncio.create_subprocess_exec(
            *ping_command(hostname),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
        )
    except OSError as e:
        logger.warning("Could not run ping: %s", e)
        return PingResult(False, str(e), [PING_FAILED])

    try:
        stdout, _ = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()
        return PingResult(False, "Timeout", [TIMED_OUT])

    output = stdout.decode(errors="replace")
    if process.returncode == 0:
        return PingResult(True, output, [REACHABLE])
    return PingResult(False, output, [UNREACHABLE])
