#!/usr/bin/env python3
"""
Ringbox Input Validation Framework
Validation and coercion of raw option answers
"""

import re
import ipaddress
from urllib.parse import urlparse
from typing import Any, List, Optional
from ringbox.exceptions import ValidationError


_DOMAIN_PATTERN = re.compile(
    r'^(?:[a-zA-Z0-9](?:[a-zA-Z0-9\-]{0,61}[a-zA-Z0-9])?\.)*[a-zA-Z0-9](?:[a-zA-Z0-9\-]{0,61}[a-zA-Z0-9])?$'
)


class Validator:
    """Validators shared by the option coercion layer and the bundled modules"""

    @staticmethod
    def validate_url(url: str, allow_protocols: Optional[List[str]] = None, allow_empty: bool = False) -> str:
        """
        Validate and normalize URLs

        Args:
            url: URL to validate
            allow_protocols: List of allowed protocols (default: ['http', 'https'])
            allow_empty: Allow empty URLs

        Returns:
            Validated URL

        Raises:
            ValidationError: If URL is invalid
        """
        if allow_protocols is None:
            allow_protocols = ['http', 'https']

        if not url and allow_empty:
            return url

        url = (url or "").strip()
        if not url:
            raise ValidationError("URL cannot be empty", field="url")

        if '://' not in url:
            url = f"http://{url}"

        parsed = urlparse(url)
        if parsed.scheme not in allow_protocols:
            raise ValidationError(
                f"Protocol must be one of {allow_protocols}",
                field="url",
                value=parsed.scheme
            )
        if not parsed.hostname:
            raise ValidationError("Invalid URL: missing host", field="url", value=url)

        try:
            Validator.validate_target(parsed.hostname)
        except ValidationError as e:
            raise ValidationError(f"Invalid URL: {e.message}", field="url", value=url)

        return url

    @staticmethod
    def validate_domain(domain: str, allow_empty: bool = False) -> str:
        """Validate a host name, returning it lowercased"""
        if not domain and allow_empty:
            return domain

        domain = (domain or "").strip().lower()

        if not domain:
            raise ValidationError("Domain cannot be empty", field="domain")

        if not _DOMAIN_PATTERN.match(domain):
            raise ValidationError("Invalid domain format", field="domain", value=domain)

        return domain

    @staticmethod
    def validate_ip(ip: str, allow_empty: bool = False) -> str:
        """Validate IP address (IPv4 or IPv6)"""
        if not ip and allow_empty:
            return ip

        ip = (ip or "").strip()

        if not ip:
            raise ValidationError("IP cannot be empty", field="ip")

        try:
            ipaddress.ip_address(ip)
            return ip
        except ValueError:
            raise ValidationError("Invalid IP address format", field="ip", value=ip)

    @staticmethod
    def validate_target(target: str) -> str:
        """
        Validate a scan target: an IP address or a host name

        Raises:
            ValidationError: If the target is neither
        """
        target = (target or "").strip()
        if not target:
            raise ValidationError("Target cannot be empty", field="target")

        try:
            return Validator.validate_ip(target)
        except ValidationError:
            pass

        try:
            return Validator.validate_domain(target)
        except ValidationError:
            raise ValidationError("Invalid target, expected an IP address or host name",
                                  field="target", value=target)

    @staticmethod
    def validate_port(port: Any, allow_zero: bool = False) -> int:
        """
        Validate port number

        Raises:
            ValidationError: If port is invalid
        """
        try:
            port_num = int(port)
        except (ValueError, TypeError):
            raise ValidationError("Port must be a valid number", field="port", value=port)

        min_port = 0 if allow_zero else 1
        if not (min_port <= port_num <= 65535):
            raise ValidationError(
                f"Port must be between {min_port} and 65535",
                field="port",
                value=port
            )
        return port_num

    @staticmethod
    def validate_integer(value: Any, min_val: Optional[int] = None, max_val: Optional[int] = None,
                         field: str = "value") -> int:
        """Validate integer value within optional inclusive bounds"""
        if isinstance(value, bool):
            raise ValidationError("Invalid integer value", field=field, value=value)

        try:
            int_val = int(value)
        except (ValueError, TypeError):
            raise ValidationError("Invalid integer value", field=field, value=value)

        if min_val is not None and int_val < min_val:
            raise ValidationError(f"Value must be >= {min_val}", field=field, value=value)

        if max_val is not None and int_val > max_val:
            raise ValidationError(f"Value must be <= {max_val}", field=field, value=value)

        return int_val

    @staticmethod
    def validate_choice(value: str, choices: list, field: str = "choice") -> str:
        """Validate a case-insensitive choice, returning the canonical spelling"""
        lowered = str(value).strip().lower()
        for choice in choices:
            if choice.lower() == lowered:
                return choice

        raise ValidationError(
            f"Value must be one of: {', '.join(choices)}",
            field=field,
            value=value
        )

    @staticmethod
    def validate_boolean(value: Any, field: str = "boolean") -> bool:
        """
        Validate boolean value

        Accepts yes/no, y/n, true/false, on/off and 1/0 in any case.
        """
        if isinstance(value, bool):
            return value

        lowered_value = str(value).lower().strip()

        if lowered_value in ['true', '1', 'yes', 'y', 'on']:
            return True
        if lowered_value in ['false', '0', 'no', 'n', 'off']:
            return False

        raise ValidationError(
            "Value must be a valid boolean (yes/no, true/false, 1/0)",
            field=field,
            value=value
        )
