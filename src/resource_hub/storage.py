# CSV-backed document store. One file, one row per record, a `rowtype`
# column distinguishes sections, groups, resources and the key config.
import csv
import logging
import os
import tempfile
import threading
import uuid
from collections import namedtuple
from datetime import datetime, timezone

logger = logging.getLogger(__name__)

# CSV schema:
# rowtype,id,section_id,group_id,order,name,url,desc,tags,created_at,hash,salt
FIELDS = ["rowtype", "id", "section_id", "group_id", "order", "name", "url",
          "desc", "tags", "created_at", "hash", "salt"]
KINDS = ("section", "group", "resource", "config")
CONFIG_ID = "edit-key"


class StoreError(Exception):
    """The backing file could not be read or written, or a write was refused."""


# action is one of "create", "update", "delete"; rid is None for creates
Op = namedtuple("Op", ["action", "kind", "rid", "fields"])

# `order` value meaning "after the last sibling", resolved under the write lock
APPEND = object()


def new_id():
    return uuid.uuid4().hex


def now_iso():
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def _check_kind(kind):
    if kind not in KINDS:
        raise StoreError(f"unknown record kind: {kind!r}")


def _sort_key(indexed):
    pos, r = indexed
    raw = (r.get("order") or "").strip()
    try:
        return (0, int(raw), r.get("created_at", ""), pos)
    except ValueError:
        return (1, 0, r.get("created_at", ""), pos)


def _clean(fields):
    """Coerce field values to the strings the CSV holds; drop unknown keys."""
    out = {}
    for k, v in fields.items():
        if k not in FIELDS or k in ("rowtype", "id"):
            continue
        out[k] = "" if v is None else str(v)
    return out


def _list_key(row, index):
    """Rows with equal keys are siblings in one ordered list."""
    kind = row.get("rowtype")
    if kind == "group":
        return (kind, row.get("section_id", ""))
    if kind == "resource":
        gid = row.get("group_id", "")
        grp = index.get(("group", gid)) if gid else None
        if grp is None or grp.get("section_id") != row.get("section_id"):
            gid = ""
        return (kind, row.get("section_id", ""), gid)
    return (kind,)


def _tail(row, rows, index, deleted):
    key = _list_key(row, index)
    return sum(1 for r in rows
               if r is not row
               and (r.get("rowtype"), r.get("id")) not in deleted
               and _list_key(r, index) == key)


class CSVStore:
    def __init__(self, path):
        self.path = path
        self._lock = threading.RLock()
        self._ensured = False
        self._subscribers = {}

    # ----------------------------
    # File access
    # ----------------------------
    def ensure(self):
        """Create the file with a header if missing."""
        with self._lock:
            if not os.path.exists(self.path):
                logger.info("creating data file %s", self.path)
                self.save_rows([])
            self._ensured = True

    def load_rows(self):
        try:
            with open(self.path, newline="", encoding="utf-8") as f:
                reader = csv.DictReader(f)
                if reader.fieldnames is None or "rowtype" not in reader.fieldnames:
                    raise StoreError(f"{self.path} is not a resource hub data file")
                rows = list(reader)
        except FileNotFoundError as e:
            # once ensured, a vanished file is an error, never an empty hub
            if self._ensured:
                raise StoreError(f"data file {self.path} is missing") from e
            return []
        except (OSError, csv.Error, UnicodeDecodeError) as e:
            raise StoreError(f"cannot read {self.path}: {e}") from e
        for r in rows:
            for k in FIELDS:
                if r.get(k) is None:
                    r[k] = ""
        return rows

    def save_rows(self, rows):
        """Write all rows to a temp file beside the target, then swap it in."""
        folder = os.path.dirname(os.path.abspath(self.path))
        try:
            fd, tmp = tempfile.mkstemp(prefix=".hub-", suffix=".csv", dir=folder)
            with os.fdopen(fd, "w", newline="", encoding="utf-8") as f:
                w = csv.DictWriter(f, fieldnames=FIELDS)
                w.writeheader()
                for r in rows:
                    w.writerow({k: r.get(k, "") for k in FIELDS})
            os.replace(tmp, self.path)
        except OSError as e:
            raise StoreError(f"cannot write {self.path}: {e}") from e

    # ----------------------------
    # Record operations
    # ----------------------------
    def load_all(self, kind):
        """Ordered list of records of one kind."""
        _check_kind(kind)
        rows = [r for r in self.load_rows() if r.get("rowtype") == kind]
        return [r for _, r in sorted(enumerate(rows), key=_sort_key)]

    def get(self, kind, rid):
        _check_kind(kind)
        for r in self.load_rows():
            if r.get("rowtype") == kind and r.get("id") == rid:
                return r
        return None

    def create(self, kind, fields):
        return self.transaction([Op("create", kind, None, fields)])[0]

    def update(self, kind, rid, fields):
        self.transaction([Op("update", kind, rid, fields)])

    def delete(self, kind, rid):
        self.transaction([Op("delete", kind, rid, None)])

    def batch_update(self, kind, updates):
        """Apply ``[(id, fields), ...]`` in one write."""
        self.transaction([Op("update", kind, rid, fields) for rid, fields in updates])

    def transaction(self, ops):
        """Apply every op to one in-memory copy and write it once.

        Any op that names a missing record aborts the whole batch before
        anything touches the disk. Returns the ids of created records.
        """
        ops = list(ops)
        if not ops:
            return []
        with self._lock:
            rows = self.load_rows()
            index = {(r.get("rowtype"), r.get("id")): r for r in rows}
            created = []
            deleted = set()
            for op in ops:
                _check_kind(op.kind)
                if op.action == "create":
                    rid = op.rid or new_id()
                    if (op.kind, rid) in index:
                        raise StoreError(f"{op.kind} {rid} already exists")
                    row = {k: "" for k in FIELDS}
                    row.update(rowtype=op.kind, id=rid, created_at=now_iso())
                    rows.append(row)
                    index[(op.kind, rid)] = row
                    self._apply(row, op.fields, rows, index, deleted)
                    created.append(rid)
                elif op.action in ("update", "delete"):
                    row = index.get((op.kind, op.rid))
                    if row is None or (op.kind, op.rid) in deleted:
                        raise StoreError(f"{op.kind} {op.rid} not found")
                    if op.action == "update":
                        self._apply(row, op.fields, rows, index, deleted)
                    else:
                        deleted.add((op.kind, op.rid))
                else:
                    raise StoreError(f"unknown store action: {op.action!r}")
            if deleted:
                rows = [r for r in rows if (r.get("rowtype"), r.get("id")) not in deleted]
            self.save_rows(rows)
            logger.debug("committed %d op(s) to %s", len(ops), self.path)
        self._notify({op.kind for op in ops})
        return created

    @staticmethod
    def _apply(row, fields, rows, index, deleted):
        fields = dict(fields or {})
        append = fields.get("order") is APPEND
        if append:
            del fields["order"]
        row.update(_clean(fields))
        if append:
            row["order"] = str(_tail(row, rows, index, deleted))

    # ----------------------------
    # Key config singleton
    # ----------------------------
    def get_config(self):
        return self.get("config", CONFIG_ID)

    def put_config(self, hash_hex, salt_hex):
        fields = {"hash": hash_hex, "salt": salt_hex}
        with self._lock:
            if self.get_config() is None:
                self.transaction([Op("create", "config", CONFIG_ID, fields)])
            else:
                self.update("config", CONFIG_ID, fields)

    # ----------------------------
    # Change subscription
    # ----------------------------
    def subscribe(self, kind, callback):
        """Call ``callback(records)`` with the ordered snapshot of `kind`
        after every write touching it. Returns an unsubscribe function."""
        _check_kind(kind)
        subs = self._subscribers.setdefault(kind, [])
        subs.append(callback)

        def unsubscribe():
            if callback in subs:
                subs.remove(callback)
        return unsubscribe

    def _notify(self, kinds):
        for kind in kinds:
            subs = list(self._subscribers.get(kind, ()))
            if not subs:
                continue
            snapshot = self.load_all(kind)
            for cb in subs:
                cb(snapshot)
