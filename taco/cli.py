#!/usr/bin/env python3
"""
TACo condition command line interface

Usage:
    taco validate --file <file>
    taco params --file <file> [--requester-authentication]
    taco hash --file <file>
    taco keygen [--output <file>]

Files hold either a bare condition or a condition expression
({"version": ..., "condition": ...}).
"""

import argparse
import json
import sys
from typing import Any, Dict, Optional, Sequence


def load_json(path: str) -> Any:
    """Load JSON from file."""
    with open(path, 'r') as f:
        return json.load(f)


def save_json(data: dict, path: str):
    """Save JSON to file."""
    with open(path, 'w') as f:
        json.dump(data, f, indent=2)


def _is_expression(data: Any) -> bool:
    return isinstance(data, dict) and "version" in data and "condition" in data


def _load_condition(path: str):
    from taco.conditions import ConditionExpression, condition_from_obj

    data = load_json(path)
    if _is_expression(data):
        return ConditionExpression.from_obj(data).condition
    return condition_from_obj(data)


def cmd_validate(args):
    """Validate a condition or condition expression."""
    from taco.errors import ConditionExpressionError, InvalidConditionError

    try:
        condition = _load_condition(args.file)
    except InvalidConditionError as e:
        print("✗ INVALID", file=sys.stderr)
        for issue in e.validation_error.issues:
            path = ".".join(str(p) for p in issue.loc) or "<root>"
            print(f"  - {path}: {issue.msg}", file=sys.stderr)
        if args.format:
            print(json.dumps(e.validation_error.format(), indent=2))
        return 1
    except ConditionExpressionError as e:
        print(f"✗ INVALID: {e}", file=sys.stderr)
        return 1
    except (OSError, json.JSONDecodeError) as e:
        print(f"✗ Cannot read {args.file}: {e}", file=sys.stderr)
        return 1

    print(f"✓ VALID {condition.condition_type} condition")
    print(f"  hash: {condition.hash()}")
    return 0


def cmd_params(args):
    """List the context parameters a condition requests."""
    from taco.conditions.context import requested_context_parameters
    from taco.errors import TacoError

    try:
        condition = _load_condition(args.file)
    except TacoError as e:
        print(f"✗ {e}", file=sys.stderr)
        return 1
    except (OSError, json.JSONDecodeError) as e:
        print(f"✗ Cannot read {args.file}: {e}", file=sys.stderr)
        return 1

    params = requested_context_parameters(condition, args.requester_authentication)
    print(json.dumps(sorted(params), indent=2))
    return 0


def cmd_hash(args):
    """Compute the hash of a condition or condition expression."""
    from taco.conditions import ConditionExpression, condition_from_obj
    from taco.errors import TacoError

    try:
        data = load_json(args.file)
    except (OSError, json.JSONDecodeError) as e:
        print(f"✗ Cannot read {args.file}: {e}", file=sys.stderr)
        return 1

    try:
        if _is_expression(data):
            h = ConditionExpression.from_obj(data).hash()
            print(f"expression_hash: {h}")
        else:
            h = condition_from_obj(data).hash()
            print(f"condition_hash: {h}")
    except TacoError as e:
        print(f"✗ {e}", file=sys.stderr)
        return 1
    return 0


def cmd_keygen(args):
    """Generate an Ed25519 key for signed-message authentication."""
    from nacl.signing import SigningKey

    from taco.conditions.context import address_from_verify_key

    key = SigningKey.generate()
    key_data: Dict[str, str] = {
        "private_key": bytes(key).hex(),
        "public_key": bytes(key.verify_key).hex(),
        "address": address_from_verify_key(key.verify_key),
    }

    if args.output:
        save_json(key_data, args.output)
        print(f"Key saved to: {args.output}")
    else:
        print(json.dumps(key_data, indent=2))

    print(f"\nAddress: {key_data['address']}", file=sys.stderr)
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="TACo condition CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  taco validate -f condition.json
  taco params -f expression.json --requester-authentication
  taco hash -f condition.json
  taco keygen -o key.json
        """
    )

    parser.add_argument("--log-level", help="Enable package logging at this level (e.g. DEBUG)")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # validate
    validate_parser = subparsers.add_parser("validate", help="Validate a condition")
    validate_parser.add_argument("-f", "--file", required=True, help="Condition JSON file")
    validate_parser.add_argument("--format", action="store_true", help="Print nested diagnostics as JSON")

    # params
    params_parser = subparsers.add_parser("params", help="List requested context parameters")
    params_parser.add_argument("-f", "--file", required=True, help="Condition JSON file")
    params_parser.add_argument(
        "-r", "--requester-authentication",
        action="store_true",
        help="Include the requester address parameter",
    )

    # hash
    hash_parser = subparsers.add_parser("hash", help="Compute condition hash")
    hash_parser.add_argument("-f", "--file", required=True, help="Condition JSON file")

    # keygen
    keygen_parser = subparsers.add_parser("keygen", help="Generate an auth signing key")
    keygen_parser.add_argument("-o", "--output", help="Output file for the key")

    args = parser.parse_args(argv)

    if args.log_level:
        from taco.logging_config import configure_logging
        configure_logging(level=args.log_level)

    if args.command == "validate":
        return cmd_validate(args)
    elif args.command == "params":
        return cmd_params(args)
    elif args.command == "hash":
        return cmd_hash(args)
    elif args.command == "keygen":
        return cmd_keygen(args)
    else:
        parser.print_help()
        return 2


if __name__ == "__main__":
    sys.exit(main())
