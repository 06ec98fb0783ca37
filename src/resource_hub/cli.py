# Command line: run the server or manage the data file directly.
# CLI commands act as the local owner, so they always run in edit mode.
import argparse
import logging
import sys

from . import config
from .access import AccessGate
from .controller import HubController, ValidationError
from .models import InGroup
from .storage import CSVStore, StoreError

logger = logging.getLogger(__name__)


def build_parser():
    parser = argparse.ArgumentParser(prog="resource-hub", description="Resource hub server and data tools")
    parser.add_argument("--data", default=config.DATA_FILE, help="CSV data file (default: %(default)s)")
    sub = parser.add_subparsers(dest="cmd")

    srv = sub.add_parser("serve", help="Run the web app")
    srv.add_argument("--host", default=config.HOST)
    srv.add_argument("--port", type=int, default=config.PORT)
    srv.add_argument("--debug", action="store_true", default=config.DEBUG)

    sub.add_parser("list-sections", help="List sections")

    lr = sub.add_parser("list-resources", help="List resources")
    lr.add_argument("--section", help="Only this section ID")

    adds = sub.add_parser("add-section", help="Add a section")
    adds.add_argument("--name", required=True)

    addg = sub.add_parser("add-group", help="Add a group to a section")
    addg.add_argument("--section", required=True)
    addg.add_argument("--name", required=True)

    addr = sub.add_parser("add-resource", help="Add a resource")
    addr.add_argument("--section", required=True)
    addr.add_argument("--name", required=True)
    addr.add_argument("--url", required=True)
    addr.add_argument("--desc", default="")
    addr.add_argument("--tags", default="", help="Comma separated")
    addr.add_argument("--group", default=None)

    dels = sub.add_parser("delete-section", help="Delete a section with its groups and resources")
    dels.add_argument("--id", required=True)

    delr = sub.add_parser("delete-resource", help="Delete a resource")
    delr.add_argument("--id", required=True)

    key = sub.add_parser("set-key", help="Set or replace the shared edit key")
    key.add_argument("--key", required=True)
    return parser


def run_command(args, store):
    if args.cmd == "set-key":
        AccessGate(store).set_secret(args.key)
        print("edit key saved")
        return 0

    with HubController(store, edit_mode=True) as h:
        st = h.state

        if args.cmd == "list-sections":
            for s in st.sections:
                print(f"{s.id}\t{s.name}")
            return 0

        if args.cmd == "list-resources":
            for r in st.resources:
                if args.section and r.section_id != args.section:
                    continue
                grp = st.effective_group(r)
                gname = st.group(grp.group_id).name if isinstance(grp, InGroup) else "-"
                print(f"{r.id}\t{r.section_id}\t{gname}\t{r.name}\t{r.url}")
            return 0

        if args.cmd == "add-section":
            print(h.create_section(args.name).id)
            return 0

        if args.cmd == "add-group":
            print(h.create_group(args.section, args.name).id)
            return 0

        if args.cmd == "add-resource":
            res = h.create_resource(args.section, args.name, args.url, args.desc, args.tags, args.group)
            print(f"{res.id}\t{res.url}")
            return 0

        if args.cmd == "delete-section":
            if not h.delete_section(args.id):
                print("Section not found", file=sys.stderr); return 1
            return 0

        if args.cmd == "delete-resource":
            if not h.delete_resource(args.id):
                print("Resource not found", file=sys.stderr); return 1
            return 0
    return None


def main(argv=None):
    logging.basicConfig(level=config.LOG_LEVEL,
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.cmd == "serve":
        from .app import app
        app.config["HUB_DATA_FILE"] = args.data
        app.run(debug=args.debug, host=args.host, port=args.port)
        return 0

    if not args.cmd:
        parser.print_help()
        return 0

    store = CSVStore(args.data)
    try:
        store.ensure()
        return run_command(args, store) or 0
    except ValidationError as e:
        print(e.message, file=sys.stderr)
        return 1
    except (StoreError, ValueError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
