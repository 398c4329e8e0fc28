#!/usr/bin/env python3
"""
Print a fresh RS256 key pair for JWT signing as environment variables.

Without JWT_PRIVATE_KEY / JWT_PUBLIC_KEY the API generates a throwaway pair
at start-up, so tokens stop validating after every restart.
"""

from geolink.services.auth import generate_rsa_key_pair


def format_env_lines(private_key: str, public_key: str) -> str:
    """Render the key pair as single-line, ``\\n``-escaped env assignments."""
    newline = "\\n"
    return "\n".join([
        f'JWT_PRIVATE_KEY="{private_key.strip().replace(chr(10), newline)}"',
        f'JWT_PUBLIC_KEY="{public_key.strip().replace(chr(10), newline)}"'
    ])


def main():
    private_key, public_key = generate_rsa_key_pair()
    print(format_env_lines(private_key, public_key))


if __name__ == "__main__":
    main()
