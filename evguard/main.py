"""
============================================================
 EV-GUARD — Main Entry Point
 Run: python -m evguard.main
============================================================
"""

import argparse
import logging

import uvicorn

from evguard import config, create_app


def main():
    parser = argparse.ArgumentParser(description="EV-GUARD fleet safety monitor")
    parser.add_argument("--host", default=config.SERVER_HOST)
    parser.add_argument("--port", type=int, default=config.SERVER_PORT)
    parser.add_argument("--log-level", default="info")
    args = parser.parse_args()

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    print("\n    +-----------------------------------------------------------+")
    print(f"    |         EV-GUARD FLEET SAFETY MONITOR  v{config.VERSION:<18}|")
    print("    |         Driver Escalation Engine + Fleet Telemetry       |")
    print("    +-----------------------------------------------------------+\n")
    print(f"  Dashboard API:  http://localhost:{args.port}/api/status")
    print(f"  Tick interval:  {config.TICK_INTERVAL:.2f}s")
    print(f"  RNG seed:       {config.RNG_SEED if config.RNG_SEED is not None else 'random'}")
    print()

    uvicorn.run(create_app(), host=args.host, port=args.port, log_level=args.log_level)


if __name__ == "__main__":
    main()
