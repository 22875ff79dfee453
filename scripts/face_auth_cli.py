"""
Command-line client for the Face Vector Authentication API.

Feature vectors are read from a .npy or .json file, or derived from an
image file with the configured feature extractor.

Usage:
    # Register from a saved vector
    python scripts/face_auth_cli.py register alice --image face.jpg --vector alice.npy

    # Register using the extractor on the image itself
    python scripts/face_auth_cli.py register alice --image face.jpg

    # Authenticate
    python scripts/face_auth_cli.py authenticate --image login.jpg
    python scripts/face_auth_cli.py authenticate --vector query.json

    # Administration
    python scripts/face_auth_cli.py list
    python scripts/face_auth_cli.py delete alice

Exit codes: 0 success / match, 1 rejected or request error, 2 server unavailable.
"""

import argparse
import base64
import json
import sys
from pathlib import Path
from typing import List, Optional
from urllib.parse import quote

import httpx
import numpy as np

PROJECT_ROOT = Path(__file__).parent.parent.resolve()
sys.path.insert(0, str(PROJECT_ROOT))

from core.config import get_api_config
from core.exceptions import ExtractionFailedError, InvalidInputError
from core.feature_extractor import get_feature_extractor


def print_banner(text: str) -> None:
    print()
    print("=" * 60)
    print(f"  {text}")
    print("=" * 60)


def load_vector(vector_path: Path) -> List[float]:
    """Load a feature vector from a .npy or .json file."""
    if vector_path.suffix == ".npy":
        return np.load(str(vector_path)).astype(np.float64).ravel().tolist()

    try:
        with open(vector_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except ValueError as e:
        raise InvalidInputError(f"{vector_path} is not valid JSON: {e}") from e

    # Accept either a bare list or {"features": [...]}
    if isinstance(data, dict):
        if "features" not in data:
            raise InvalidInputError(f"{vector_path} has no \"features\" key")
        data = data["features"]
    try:
        return [float(x) for x in data]
    except (TypeError, ValueError) as e:
        raise InvalidInputError(f"{vector_path} does not hold a numeric vector") from e


def extract_vector(image_path: Path) -> List[float]:
    """Run the configured feature extractor on an image file."""
    extractor = get_feature_extractor()
    extractor.load_model()
    return extractor.extract(image_path.read_bytes()).tolist()


def encode_image(image_path: Path) -> str:
    """Encode an image file as a base64 data URL."""
    suffix = image_path.suffix.lstrip(".").lower() or "jpeg"
    if suffix == "jpg":
        suffix = "jpeg"
    encoded = base64.b64encode(image_path.read_bytes()).decode("ascii")
    return f"data:image/{suffix};base64,{encoded}"


def resolve_vector(args: argparse.Namespace) -> Optional[List[float]]:
    if args.vector:
        return load_vector(Path(args.vector))
    if args.image:
        return extract_vector(Path(args.image))
    return None


def report(response: httpx.Response) -> int:
    """Print a response body and map its status to an exit code."""
    try:
        body = response.json()
    except ValueError:
        body = {"error": response.text}

    print(json.dumps(body, indent=2, default=str))

    if response.is_success:
        return 0
    if response.status_code == 503:
        return 2
    return 1


def cmd_register(client: httpx.Client, args: argparse.Namespace) -> int:
    if not args.image:
        print("ERROR: --image is required for registration")
        return 1

    payload = {
        "username": args.username,
        "image_data": encode_image(Path(args.image)),
        "features": resolve_vector(args),
    }
    print_banner(f"Registering {args.username}")
    return report(client.post("/register", json=payload))


def cmd_authenticate(client: httpx.Client, args: argparse.Namespace) -> int:
    features = resolve_vector(args)
    if features is None:
        print("ERROR: --image or --vector is required for authentication")
        return 1

    print_banner("Authenticating")
    rc = report(client.post("/authenticate", json={"features": features}))
    print_banner("AUTHENTICATION: MATCH" if rc == 0 else "AUTHENTICATION: NO MATCH")
    return rc


def cmd_list(client: httpx.Client, args: argparse.Namespace) -> int:
    return report(client.get("/users"))


def cmd_delete(client: httpx.Client, args: argparse.Namespace) -> int:
    # Usernames may contain "/" or "?"
    return report(client.delete(f"/users/{quote(args.username, safe='')}"))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Face Vector Authentication API client",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--api-url",
        default=None,
        help="API base URL (default: api.base_url from config.yaml)",
    )
    parser.add_argument(
        "--timeout", type=float, default=10.0, help="Request timeout in seconds"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    register = subparsers.add_parser("register", help="Register a new user")
    register.add_argument("username")
    register.add_argument("--image", help="Reference face image")
    register.add_argument("--vector", help=".npy or .json feature vector")
    register.set_defaults(func=cmd_register)

    authenticate = subparsers.add_parser("authenticate", help="Authenticate a face")
    authenticate.add_argument("--image", help="Login face image")
    authenticate.add_argument("--vector", help=".npy or .json feature vector")
    authenticate.set_defaults(func=cmd_authenticate)

    list_users = subparsers.add_parser("list", help="List enrolled users")
    list_users.set_defaults(func=cmd_list)

    delete = subparsers.add_parser("delete", help="Delete an enrolled user")
    delete.add_argument("username")
    delete.set_defaults(func=cmd_delete)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    api_url = args.api_url or get_api_config().get("base_url", "http://localhost:5000")

    try:
        with httpx.Client(base_url=api_url, timeout=args.timeout) as client:
            return args.func(client, args)
    except (ExtractionFailedError, InvalidInputError) as e:
        print(f"\nERROR: {e.message}")
        return 1
    except httpx.TransportError as e:
        print(f"\nERROR: Cannot reach API at {api_url}: {e}")
        return 2


if __name__ == "__main__":
    sys.exit(main())
