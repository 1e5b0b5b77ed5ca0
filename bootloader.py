import argparse

import uvicorn

from shared.utils import config

SERVICES = {
    "jobs-api": "services.jobs.app:create_app",
}


def main():
    parser = argparse.ArgumentParser(description="Bootloader for the season highlights FastAPI service.")
    parser.add_argument("service", nargs="?", default="jobs-api", choices=SERVICES.keys(), help="Service to start")
    parser.add_argument("--host", default="0.0.0.0", help="Host to bind")
    parser.add_argument("--port", type=int, default=config.get("port", 3001), help="Port to bind")
    parser.add_argument("--reload", action="store_true", help="Enable auto-reload (dev mode)")
    args = parser.parse_args()

    app_path = SERVICES[args.service]
    print(f"[BOOTLOADER] Starting {args.service} on {args.host}:{args.port} ...")
    uvicorn.run(app_path, host=args.host, port=args.port, reload=args.reload, factory=True)


if __name__ == "__main__":
    main()
