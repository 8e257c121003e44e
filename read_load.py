"""
read_load.py - async load script hammering redirects

Usage:
  python read_load.py --base http://127.0.0.1:8000 --in links_created.jsonl --count 15000 --concurrency 200

With --verify, every code's click count is read back after the run and
compared with the number of redirects that script served for it.
"""
import argparse
import asyncio
import json
import random
import time
from collections import Counter
from datetime import datetime, timezone

import httpx


def _now_iso():
    return datetime.now(timezone.utc).isoformat()


def _load_codes(path):
    codes = []
    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            code = json.loads(line).get("code")
            if code:
                codes.append(code)
    return codes


async def _hit_one(client: httpx.AsyncClient, base: str, code: str) -> bool:
    try:
        r = await client.get(f"{base}/{code}", follow_redirects=False, timeout=10)
    except httpx.HTTPError:
        return False
    return r.status_code == 302


async def _verify(client: httpx.AsyncClient, base: str, served: Counter, before: dict) -> int:
    mismatches = 0
    for code, hits in served.items():
        r = await client.get(f"{base}/api/links/{code}", timeout=10)
        clicks = r.json()["clicks"]
        if clicks - before.get(code, 0) != hits:
            mismatches += 1
            print(f"MISMATCH {code}: served={hits} counted={clicks - before.get(code, 0)}")
    return mismatches


async def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--base", default="http://127.0.0.1:8000")
    parser.add_argument("--in", dest="codes_file", default="links_created.jsonl")
    parser.add_argument("--count", type=int, default=15000)
    parser.add_argument("--concurrency", type=int, default=200)
    parser.add_argument("--verify", action="store_true", help="check click counts afterwards")
    args = parser.parse_args()

    codes = _load_codes(args.codes_file)
    if not codes:
        print(f"No codes found in {args.codes_file}. Run write_load.py first.")
        return

    start_iso = _now_iso()
    served = Counter()

    limit = httpx.Limits(max_connections=args.concurrency, max_keepalive_connections=args.concurrency)
    async with httpx.AsyncClient(limits=limit) as client:
        before = {}
        if args.verify:
            r = await client.get(f"{args.base}/api/links", timeout=30)
            before = {row["shortCode"]: row["clicks"] for row in r.json()}

        sem = asyncio.Semaphore(args.concurrency)

        async def _task():
            code = random.choice(codes)
            async with sem:
                if await _hit_one(client, args.base, code):
                    served[code] += 1

        t0 = time.perf_counter()
        await asyncio.gather(*(_task() for _ in range(args.count)))
        dt = time.perf_counter() - t0

        success = sum(served.values())
        print(f"START: {start_iso}")
        print(f"END:   {_now_iso()}")
        print(f"TOTAL: {dt:.3f} s")
        print(f"OPS:   reads={args.count}, ok={success}, fail={args.count - success}")
        if dt > 0:
            print(f"RPS:   {success/dt:.1f} req/s")

        if args.verify:
            mismatches = await _verify(client, args.base, served, before)
            print(f"VERIFY: {len(served) - mismatches}/{len(served)} codes counted exactly")


if __name__ == "__main__":
    asyncio.run(main())
