"""Command line entry point.

Deploys the demo token pair with one constant-product and one curve-like pool
(each pool family keeps its own registry) and optionally seeds and quotes them.

Usage:
    amm-engine deploy --seed 1000
    amm-engine quote --amount 10 --seed 1000
"""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass

import structlog

from amm_engine.config import EngineConfig
from amm_engine.errors import AMMError
from amm_engine.logging_config import configure_logging
from amm_engine.pools import PoolFactory, PoolKind
from amm_engine.pools.factory import AnyPool
from amm_engine.tokens import InMemoryToken

logger = structlog.get_logger()

DEPLOYER = "0x00000000000000000000000000000000000000d1"
ONE_TOKEN = 10**18
DEFAULT_SUPPLY = 10_000


@dataclass
class Deployment:
    """Tokens and pools created by deploy()."""

    u_token: InMemoryToken
    poly_token: InMemoryToken
    cp_pool: AnyPool
    curve_pool: AnyPool


def deploy(supply: int = DEFAULT_SUPPLY, seed: int = 0, config: EngineConfig | None = None) -> Deployment:
    """Create both tokens and both pools, seeding each pool with `seed` whole tokens per side."""
    config = config or EngineConfig.from_env()
    u_token = InMemoryToken("UToken", "UTK", DEPLOYER, supply * ONE_TOKEN)
    poly_token = InMemoryToken("PolyToken", "POLY", DEPLOYER, supply * ONE_TOKEN)

    cp_pool = PoolFactory(config).create_pool(u_token, poly_token, kind=PoolKind.CONSTANT_PRODUCT)
    curve_pool = PoolFactory(config).create_pool(u_token, poly_token, kind=PoolKind.STABLE)

    if seed:
        amount = seed * ONE_TOKEN
        for pool in (cp_pool, curve_pool):
            u_token.approve(DEPLOYER, pool.address, amount)
            poly_token.approve(DEPLOYER, pool.address, amount)
            pool.add_liquidity(DEPLOYER, amount, amount)

    return Deployment(u_token=u_token, poly_token=poly_token, cp_pool=cp_pool, curve_pool=curve_pool)


def cmd_deploy(args: argparse.Namespace) -> int:
    deployment = deploy(supply=args.supply, seed=args.seed)
    print("=" * 19 + "Deploying" + "=" * 19)
    print(f"UToken deployed to {deployment.u_token.address}")
    print(f"PolyToken deployed to {deployment.poly_token.address}")
    print(f"Constant Product Liquidity Pool deployed to {deployment.cp_pool.address}")
    print(f"Curve-like Liquidity Pool deployed to {deployment.curve_pool.address}")
    if args.seed:
        for label, pool in (("Constant Product", deployment.cp_pool), ("Curve-like", deployment.curve_pool)):
            reserve_a, reserve_b = pool.get_reserves()
            print(f"{label} reserves: ({reserve_a}, {reserve_b}), shares: {pool.total_shares}")
    return 0


def cmd_quote(args: argparse.Namespace) -> int:
    if args.seed <= 0:
        print("Error: --seed must be positive to quote against non-empty pools")
        return 1
    deployment = deploy(supply=args.supply, seed=args.seed)
    amount_in = args.amount * ONE_TOKEN
    token_in = deployment.u_token
    for label, pool in (("Constant Product", deployment.cp_pool), ("Curve-like", deployment.curve_pool)):
        amount_out = pool.quote(amount_in, token_in)
        print(f"{label}: {amount_in} {token_in.symbol} -> {amount_out} {pool.get_token_out(token_in).address}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="amm-engine", description="Two-asset AMM engine demo")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    deploy_parser = subparsers.add_parser("deploy", help="Deploy the demo tokens and pools")
    deploy_parser.add_argument("--supply", type=int, default=DEFAULT_SUPPLY, help="Whole tokens minted per token")
    deploy_parser.add_argument("--seed", type=int, default=0, help="Whole tokens seeded per side of each pool")
    deploy_parser.set_defaults(handler=cmd_deploy)

    quote_parser = subparsers.add_parser("quote", help="Quote the same trade on both pools")
    quote_parser.add_argument("--amount", type=int, required=True, help="Whole UToken amount to sell")
    quote_parser.add_argument("--supply", type=int, default=DEFAULT_SUPPLY, help="Whole tokens minted per token")
    quote_parser.add_argument("--seed", type=int, default=1_000, help="Whole tokens seeded per side of each pool")
    quote_parser.set_defaults(handler=cmd_quote)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)
    try:
        return args.handler(args)
    except (AMMError, ValueError) as err:
        logger.error("command_failed", command=args.command, error=str(err))
        print(f"Error: {err}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
