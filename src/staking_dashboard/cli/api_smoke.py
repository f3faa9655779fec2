"""CLI to poke a running staking dashboard API.

Usage:
  poetry run api-smoke health
  poetry run api-smoke login alice s3cret-pass
  poetry run api-smoke --token $TOKEN portfolio
  poetry run api-smoke --token $TOKEN stake 0.5
  poetry run api-smoke prices quote ETH
  poetry run api-smoke --token $ADMIN_TOKEN admin rewards
"""
import argparse
import json
import os
import sys

import httpx


def print_json(data: object) -> None:
    print(json.dumps(data, indent=2, default=str))


def _get(client: httpx.Client, path: str, **params) -> int:
    r = client.get(path, params=params or None)
    r.raise_for_status()
    print_json(r.json())
    return 0


def _post(client: httpx.Client, path: str, body: dict | None = None) -> int:
    r = client.post(path, json=body or {})
    r.raise_for_status()
    print_json(r.json())
    return 0


def cmd_health(client: httpx.Client, _: argparse.Namespace) -> int:
    return _get(client, "/")


def cmd_register(client: httpx.Client, args: argparse.Namespace) -> int:
    body = {"username": args.username, "password": args.password}
    if args.referral_code:
        body["referral_code"] = args.referral_code
    return _post(client, "/auth/register", body)


def cmd_login(client: httpx.Client, args: argparse.Namespace) -> int:
    r = client.post("/auth/login", json={"username": args.username, "password": args.password})
    r.raise_for_status()
    print(r.json()["access_token"])
    return 0


def cmd_me(client: httpx.Client, _: argparse.Namespace) -> int:
    return _get(client, "/users/me")


def cmd_portfolio(client: httpx.Client, _: argparse.Namespace) -> int:
    return _get(client, "/portfolio")


def cmd_transactions(client: httpx.Client, args: argparse.Namespace) -> int:
    r = client.get("/transactions")
    r.raise_for_status()
    data = r.json()
    print(f"Found {len(data)} transactions")
    print_json(data[: args.head] if args.head else data)
    return 0


def cmd_stake(client: httpx.Client, args: argparse.Namespace) -> int:
    return _post(client, "/stakes", {"amount": args.amount, "coin": args.coin})


def cmd_withdraw(client: httpx.Client, args: argparse.Namespace) -> int:
    return _post(client, "/withdraw", {"amount": args.amount, "coin": args.coin})


def cmd_calculator(client: httpx.Client, args: argparse.Namespace) -> int:
    return _get(client, "/calculator", amount=args.amount, days=args.days, apy=args.apy)


def cmd_prices_quote(client: httpx.Client, args: argparse.Namespace) -> int:
    return _get(client, f"/prices/{args.symbol}")


def cmd_prices_history(client: httpx.Client, args: argparse.Namespace) -> int:
    r = client.get(f"/prices/{args.symbol}/history", params={"days": args.days})
    r.raise_for_status()
    data = r.json()
    print(f"Found {len(data)} history points for {args.symbol}")
    print_json(data[: args.head] if args.head else data)
    return 0


def cmd_admin_overview(client: httpx.Client, _: argparse.Namespace) -> int:
    return _get(client, "/admin/overview")


def cmd_admin_rewards(client: httpx.Client, _: argparse.Namespace) -> int:
    return _get(client, "/admin/rewards")


def cmd_admin_run(client: httpx.Client, _: argparse.Namespace) -> int:
    return _post(client, "/admin/rewards/run")


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Exercise the staking dashboard API.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--base-url",
        default="http://localhost:8000",
        help="API base URL (default: http://localhost:8000)",
    )
    parser.add_argument(
        "--token",
        default=os.getenv("STAKING_TOKEN"),
        help="Bearer token (default: $STAKING_TOKEN)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=30.0,
        help="Request timeout in seconds (default: 30)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True, help="Command")

    subparsers.add_parser("health", help="GET / health check")

    p = subparsers.add_parser("register", help="POST /auth/register")
    p.add_argument("username")
    p.add_argument("password")
    p.add_argument("--referral-code", default=None, help="Referrer's code")
    p = subparsers.add_parser("login", help="POST /auth/login, prints the token")
    p.add_argument("username")
    p.add_argument("password")

    subparsers.add_parser("me", help="GET /users/me")
    subparsers.add_parser("portfolio", help="GET /portfolio")
    p = subparsers.add_parser("transactions", help="GET /transactions")
    p.add_argument("--head", type=int, default=0, help="Show only first N (0 = all)")
    for name, help_text in [("stake", "POST /stakes"), ("withdraw", "POST /withdraw")]:
        p = subparsers.add_parser(name, help=help_text)
        p.add_argument("amount", help="Amount in coin units (e.g. 0.5)")
        p.add_argument("--coin", default="ETH", help="Coin symbol (default: ETH)")
    p = subparsers.add_parser("calculator", help="GET /calculator")
    p.add_argument("amount")
    p.add_argument("--days", type=int, default=365)
    p.add_argument("--apy", default="3.00")

    prices = subparsers.add_parser("prices", help="Price routes (/prices)")
    prices_sub = prices.add_subparsers(dest="prices_cmd", required=True)
    p = prices_sub.add_parser("quote", help="GET /prices/{symbol}")
    p.add_argument("symbol", help="Coin symbol (e.g. ETH)")
    p = prices_sub.add_parser("history", help="GET /prices/{symbol}/history")
    p.add_argument("symbol", help="Coin symbol")
    p.add_argument("--days", type=int, default=30, help="Days of history (default: 30)")
    p.add_argument("--head", type=int, default=0, help="Show only first N points (0 = all)")

    admin = subparsers.add_parser("admin", help="Admin routes (/admin), needs an admin token")
    admin_sub = admin.add_subparsers(dest="admin_cmd", required=True)
    admin_sub.add_parser("overview", help="GET /admin/overview")
    admin_sub.add_parser("rewards", help="GET /admin/rewards")
    admin_sub.add_parser("run", help="POST /admin/rewards/run")

    args = parser.parse_args()
    base_url = args.base_url.rstrip("/")

    handlers = {
        "health": cmd_health,
        "register": cmd_register,
        "login": cmd_login,
        "me": cmd_me,
        "portfolio": cmd_portfolio,
        "transactions": cmd_transactions,
        "stake": cmd_stake,
        "withdraw": cmd_withdraw,
        "calculator": cmd_calculator,
        "prices": {
            "quote": cmd_prices_quote,
            "history": cmd_prices_history,
        },
        "admin": {
            "overview": cmd_admin_overview,
            "rewards": cmd_admin_rewards,
            "run": cmd_admin_run,
        },
    }

    handler = handlers[args.command]
    if isinstance(handler, dict):
        sub = getattr(args, f"{args.command}_cmd", None)
        if sub is None:
            parser.error(f"Missing subcommand for {args.command}")
        handler = handler[sub]

    headers = {"Authorization": f"Bearer {args.token}"} if args.token else None
    try:
        with httpx.Client(base_url=base_url, timeout=args.timeout, headers=headers) as client:
            return handler(client, args)
    except httpx.HTTPStatusError as e:
        print(f"HTTP error: {e.response.status_code}", file=sys.stderr)
        if e.response.content:
            try:
                print(e.response.json(), file=sys.stderr)
            except ValueError:
                print(e.response.text, file=sys.stderr)
        return 1
    except httpx.RequestError as e:
        print(f"Request error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
