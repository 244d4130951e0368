from __future__ import annotations

import argparse
import json
import logging
import os
from datetime import datetime, timezone
from decimal import InvalidOperation
from typing import Any, Dict, List, Optional, Sequence

from .accounts import derive_addresses, load_addresses
from .config import Settings
from .draw import DrawRecord, tally, to_ether, to_wei
from .errors import NoEntrants
from .ledger import Ledger
from .pool import Pool
from .project_constants import DEFAULT_ACCOUNT_BALANCE
from .rpc import RpcClient, load_beacon_from_block_feed_file
from .verify import verify_audit

TOOL_VERSION = "1.0.0"


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


def _ether_arg(raw: str) -> int:
    try:
        return to_wei(raw)
    except (InvalidOperation, ValueError) as e:
        raise argparse.ArgumentTypeError(f"not an ether amount: {raw} ({e})")


def _resolve_beacon(args: argparse.Namespace) -> Optional[str]:
    if args.beacon:
        return args.beacon
    if args.block_feed_file:
        return load_beacon_from_block_feed_file(args.block_feed_file, block_hint=args.block)
    return None


def _provision(ledger: Ledger, args: argparse.Namespace, seed: str) -> List[str]:
    if args.accounts_file:
        addresses = load_addresses(args.accounts_file)
        if not addresses:
            raise SystemExit(f"No addresses in {args.accounts_file}.")
    else:
        addresses = derive_addresses(seed, args.players)

    for addr in addresses:
        ledger.create_account(addr, DEFAULT_ACCOUNT_BALANCE)
    return addresses


def cmd_simulate(args: argparse.Namespace) -> int:
    settings = Settings.from_env(rpc_url_override=args.rpc_url)
    log = logging.getLogger("simulate")

    seed = args.seed or os.urandom(16).hex()
    beacon = _resolve_beacon(args)
    ledger = Ledger(
        gas_fee=settings.gas_fee,
        genesis_beacon=beacon,
        entropy=seed.encode("utf-8"),
        start_time=args.start_time,
    )

    addresses = _provision(ledger, args, seed)
    operator = addresses[0]
    players = addresses if args.accounts_file else addresses[: args.players]
    value = args.value

    pool = Pool.deploy(ledger, operator, min_contribution=settings.min_contribution)
    log.info("Pool address      : %s", pool.address)
    log.info("Operator          : %s", operator)
    log.info("Min contribution  : %s ether", to_ether(pool.min_contribution))

    record: Optional[DrawRecord] = None
    winner_gain = 0
    for round_no in range(1, args.rounds + 1):
        for player in players:
            receipt = ledger.submit(player, pool.enter, value)
            if not receipt.ok:
                log.warning("Entry from %s rejected: %s", player, receipt.error)

        entrants = ledger.call(pool.get_players)
        log.info("Round %d entrants : %d", round_no, len(entrants))
        for addr, slots in tally(entrants).items():
            log.debug("  %s holds %d slot(s)", addr, slots)

        receipt = ledger.submit(operator, pool.pick_winner)
        if isinstance(receipt.error, NoEntrants):
            raise SystemExit("No entries were accepted. Check --value against the minimum.")
        record = receipt.unwrap()
        pool.check_custody()
        winner_gain = record.payout - (receipt.fee if record.winner == operator else 0)

    if record is None:
        raise SystemExit("No rounds were played.")

    audit: Dict[str, Any] = {
        "metadata": {
            "tool": "pooled-lottery",
            "version": TOOL_VERSION,
            "generated_at_utc": datetime.now(timezone.utc).isoformat(),
            "entropy_seed": seed,
            "genesis_beacon": beacon,
            "pool_address": pool.address,
            "operator": operator,
            "min_contribution": str(pool.min_contribution),
            "gas_fee": str(ledger.gas_fee),
            "rounds": args.rounds,
        },
        "draw": record.to_json(),
    }

    with open(args.out, "w", encoding="utf-8") as f:
        json.dump(audit, f, indent=2)

    print("========================================")
    print("POOLED LOTTERY DRAW")
    print("========================================")
    print(f"Pool          : {pool.address}")
    print(f"Block number  : {record.block_number}")
    print(f"Digest        : {record.digest_hex}")
    print("----------------------------------------")
    print("WINNER")
    print(f"Address       : {record.winner}")
    print(f"Slot          : {record.index} of {len(record.entrants)}")
    print(f"Payout        : {to_ether(record.payout)} ether")
    print(f"Net gain      : {to_ether(winner_gain)} ether")
    print("----------------------------------------")
    print(f"Wrote audit: {args.out}")
    return 0


def cmd_verify(args: argparse.Namespace) -> int:
    result = verify_audit(args.audit)
    print("AUDIT VERIFIED")
    print(f"Winner        : {result['winner']}")
    print(f"Winning slot  : {result['index']} of {result['entrants']}")
    print(f"Payout        : {to_ether(result['payout'])} ether")
    print(f"Digest        : {result['digest_hex']}")
    return 0


def cmd_beacon(args: argparse.Namespace) -> int:
    settings = Settings.from_env(rpc_url_override=args.rpc_url)
    with RpcClient(settings.require_rpc_url(), timeout_s=args.timeout) as rpc:
        block = args.block if args.block is not None else "finalized"
        number, blockhash, block_time = rpc.get_beacon(block)

    print(f"Block number  : {number}")
    print(f"Blockhash     : {blockhash}")
    print(
        f"Block time    : {datetime.fromtimestamp(block_time, timezone.utc).strftime('%Y-%m-%d %H:%M:%S')} UTC"
    )
    print(f"Use with      : simulate --beacon {blockhash}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="pooled-lottery",
        description="Pooled-wager lottery running on a simulated ledger.",
    )
    p.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    p.add_argument("--rpc-url", default=None, help="Override RPC URL (else use env).")
    p.add_argument("--timeout", type=float, default=60.0, help="RPC timeout seconds.")

    sub = p.add_subparsers(dest="cmd", required=True)

    s = sub.add_parser("simulate", help="Run rounds on a fresh ledger and write an audit JSON.")
    s.add_argument("--players", type=int, default=3, help="Number of provisioned players.")
    s.add_argument(
        "--value", type=_ether_arg, default="0.01", help="Entry amount in ether."
    )
    s.add_argument("--rounds", type=int, default=1, help="Rounds to play.")
    s.add_argument("--seed", default=None, help="Entropy seed (random if omitted).")
    s.add_argument(
        "--accounts-file",
        default=None,
        help="File of base58 addresses, one per line. The first is the operator.",
    )
    s.add_argument("--beacon", default=None, help="Genesis blockhash to use as beacon.")
    s.add_argument(
        "--block-feed-file",
        default=None,
        help="Path to a block feed file (raw blockhash or JSON) used as beacon.",
    )
    s.add_argument(
        "--block", type=int, default=None, help="Block number to pick from a block feed."
    )
    s.add_argument(
        "--start-time",
        type=int,
        default=None,
        help="Unix time of the genesis block (default: now).",
    )
    s.add_argument("--out", default="audit.json", help="Audit output JSON path.")
    s.set_defaults(func=cmd_simulate)

    v = sub.add_parser("verify", help="Verify an existing audit.json deterministically.")
    v.add_argument("--audit", required=True, help="Path to audit.json.")
    v.set_defaults(func=cmd_verify)

    b = sub.add_parser("beacon", help="Fetch a blockhash over RPC to use as beacon.")
    b.add_argument(
        "--block", type=int, default=None, help="Block number (default: latest finalized)."
    )
    b.set_defaults(func=cmd_beacon)

    return p


def main(argv: Sequence[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    if getattr(args, "players", 1) < 1:
        parser.error("--players must be at least 1")
    if getattr(args, "rounds", 1) < 1:
        parser.error("--rounds must be at least 1")
    setup_logging(args.verbose)
    raise SystemExit(args.func(args))
