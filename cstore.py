"""C-Store server entrypoint.

    python3 cstore.py [--backend indexed] [--port 3000]
    python3 cstore.py --print-template > data/config/server_config.yml
"""
import sys

from cstore_lib.config.config import render_template
from cstore_lib.main import create_app
from cstore_lib.setup import build_config, parse_args


def main(argv=None) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)
    if args.print_template:
        sys.stdout.write(render_template())
        return 0

    try:
        cfg = build_config(args)
    except ValueError as e:
        print(f"Failed to load server configuration: {e}", file=sys.stderr)
        return 2

    import uvicorn
    app = create_app(cfg)
    uvicorn.run(app, host=cfg.host, port=cfg.port, log_level=cfg.log_level.lower())
    return 0


if __name__ == "__main__":
    sys.exit(main())
