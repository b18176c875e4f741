"""
Colored logging utilities for the Spotify remote.

Every component logs through a ``PlayerLogger`` which tags messages with the
component that sent them, the component that received them, a timestamp and
a block of key/value details. Access tokens and client secrets are redacted
before anything is written.
"""

import logging
from datetime import datetime
from typing import Dict, Any, Optional
from enum import Enum

from colorama import Fore, Style, init

init(autoreset=True)


class ComponentType(str, Enum):
    """Components that appear in log message flows."""
    PLAYER = "PLAYER"
    AUTH = "AUTH"
    SPOTIFY_API = "SPOTIFY-API"
    SPOTIFY_ACCOUNTS = "SPOTIFY-ACCOUNTS"
    BROWSER = "BROWSER"
    SYSTEM = "SYSTEM"


class MessageType(str, Enum):
    """Message types for logging."""
    REQUEST = "REQUEST"
    RESPONSE = "RESPONSE"
    ERROR = "ERROR"
    REDIRECT = "REDIRECT"
    TOKEN_EXCHANGE = "TOKEN-EXCHANGE"
    TOKEN_REFRESH = "TOKEN-REFRESH"


class PlayerLogger:
    """
    Colored logger for Spotify API and OAuth message flows.

    Output goes through the standard ``logging`` module so that log levels
    and ``logging.disable`` apply, but each record is formatted as a small
    colored block for readability on a terminal.
    """

    def __init__(self, component_name: str):
        """
        Initialize the logger for a specific component.

        Args:
            component_name: Name of the component (PLAYER, AUTH, etc.)
        """
        self.component_name = component_name.upper()
        self.colors = self._get_component_colors()

        self.logger = logging.getLogger(f"spotify_remote.{component_name.lower()}")
        self.logger.setLevel(logging.INFO)

        # Remove existing handlers to avoid duplicates
        self.logger.handlers.clear()

        handler = logging.StreamHandler()
        handler.setLevel(logging.INFO)
        self.logger.addHandler(handler)
        self.logger.propagate = False

    def _get_component_colors(self) -> Dict[str, str]:
        """Get color scheme for different components and message types."""
        return {
            'PLAYER': Fore.BLUE + Style.BRIGHT,
            'AUTH': Fore.GREEN + Style.BRIGHT,
            'SPOTIFY-API': Fore.YELLOW + Style.BRIGHT,
            'SPOTIFY-ACCOUNTS': Fore.YELLOW + Style.BRIGHT,
            'BROWSER': Fore.CYAN + Style.BRIGHT,
            'SYSTEM': Fore.MAGENTA + Style.BRIGHT,
            'ERROR': Fore.RED + Style.BRIGHT,
            'SUCCESS': Fore.GREEN + Style.BRIGHT,
            'INFO': Fore.CYAN,
            'HEADER': Fore.WHITE + Style.BRIGHT,
            'SEPARATOR': Fore.WHITE + Style.DIM,
            'RESET': Style.RESET_ALL
        }

    def _format_timestamp(self) -> str:
        """Format current timestamp for log messages."""
        return datetime.now().strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]

    def _sanitize_data(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Sanitize sensitive data for logging.

        Redacts secrets and truncates tokens, codes and verifiers.
        """
        sanitized = {}
        for key, value in data.items():
            key_lower = key.lower()

            if any(sensitive in key_lower for sensitive in ['secret', 'password', 'authorization']):
                sanitized[key] = '[REDACTED]'
            elif any(token in key_lower for token in ['token', 'code', 'verifier', 'challenge']):
                if isinstance(value, str) and len(value) > 10:
                    sanitized[key] = f"{value[:10]}..."
                else:
                    sanitized[key] = value
            else:
                sanitized[key] = value

        return sanitized

    def log_message(self,
                    source: str,
                    destination: str,
                    message_type: str,
                    data: Dict[str, Any],
                    success: bool = True):
        """
        Log a message flow between two components.

        Args:
            source: Source component name
            destination: Destination component name
            message_type: Short description of the message
            data: Message data dictionary
            success: Whether the operation was successful
        """
        timestamp = self._format_timestamp()
        source_color = self.colors.get(source.upper(), self.colors['INFO'])
        dest_color = self.colors.get(destination.upper(), self.colors['INFO'])

        if not success:
            msg_color = self.colors['ERROR']
        elif message_type == MessageType.RESPONSE.value:
            msg_color = self.colors['SUCCESS']
        else:
            msg_color = self.colors['INFO']

        lines = [
            f"{self.colors['HEADER']}[{timestamp}] {source_color}{source}{self.colors['RESET']}"
            f" → {dest_color}{destination}{self.colors['RESET']}",
            f"{msg_color}{message_type}:{self.colors['RESET']}",
        ]
        for key, value in self._sanitize_data(data).items():
            lines.append(f"  {self.colors['INFO']}{key}:{self.colors['RESET']} {value}")
        lines.append(f"{self.colors['SEPARATOR']}{'-' * 60}{self.colors['RESET']}")

        level = logging.INFO if success else logging.ERROR
        self.logger.log(level, "\n".join(lines))

    def log_api_call(self,
                     method: str,
                     url: str,
                     status_code: Optional[int] = None,
                     details: Optional[Dict[str, Any]] = None):
        """
        Log an outbound Spotify Web API call and its result.

        Args:
            method: HTTP method
            url: Full request URL
            status_code: Response status, None if the request never completed
            details: Additional context
        """
        call_data: Dict[str, Any] = {"method": method, "url": url}
        if status_code is not None:
            call_data["status_code"] = status_code
        if details:
            call_data.update(details)

        self.log_message(
            source=self.component_name,
            destination=ComponentType.SPOTIFY_API.value,
            message_type=MessageType.REQUEST.value,
            data=call_data,
            success=status_code is None or status_code < 400
        )

    def log_error(self,
                  error_type: str,
                  message: str,
                  details: Optional[Dict[str, Any]] = None):
        """
        Log error messages with context.

        Args:
            error_type: Type of error
            message: Error message
            details: Additional error context
        """
        error_data = {
            "error_type": error_type,
            "message": message
        }

        if details:
            error_data.update(details)

        self.log_message(
            source=self.component_name,
            destination="ERROR-HANDLER",
            message_type=MessageType.ERROR.value,
            data=error_data,
            success=False
        )

    def log_info(self, message: str, details: Optional[Dict[str, Any]] = None):
        """
        Log informational messages.

        Args:
            message: Info message
            details: Additional context
        """
        lines = [f"{self.colors['INFO']}[{self._format_timestamp()}] {self.component_name}: {message}{self.colors['RESET']}"]
        if details:
            for key, value in self._sanitize_data(details).items():
                lines.append(f"  {key}: {value}")
        self.logger.info("\n".join(lines))

    def log_startup(self, host: str, port: int, additional_info: Optional[Dict[str, Any]] = None):
        """
        Log server startup information.

        Args:
            host: Interface the server binds to
            port: Port number the server is running on
            additional_info: Additional startup information
        """
        lines = [f"{self.colors['SUCCESS']}🚀 {self.component_name} started on http://{host}:{port}{self.colors['RESET']}"]
        if additional_info:
            for key, value in self._sanitize_data(additional_info).items():
                lines.append(f"   {key}: {value}")
        lines.append(f"{self.colors['SEPARATOR']}{'-' * 60}{self.colors['RESET']}")
        self.logger.info("\n".join(lines))


def create_logger(component_name: str) -> PlayerLogger:
    """
    Factory function to create logger instances.

    Args:
        component_name: Name of the component

    Returns:
        PlayerLogger: Configured logger instance
    """
    return PlayerLogger(component_name)
