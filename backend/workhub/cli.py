"""Management CLI for the static access tables.

Usage:
    python -m workhub.cli check-access           # validate module + finance tables
    python -m workhub.cli modules <department>   # modules a department can open
"""

import sys

from workhub.auth.finance import check_write_within_view
from workhub.auth.modules import MODULE_RULES, modules_for_department, validate_module_rules
from workhub.errors import ModuleConfigError
from workhub.models.employee import Department


def check_access() -> int:
    try:
        validate_module_rules()
        check_write_within_view()
    except ModuleConfigError as exc:
        print(f"  FAILED: {exc.message}")
        return 1
    print(f"  OK ({len(MODULE_RULES)} modules)")
    return 0


def list_modules(department: str) -> int:
    try:
        dept = Department(department)
    except ValueError:
        print(f"Unknown department: {department}")
        print(f"Known: {', '.join(d.value for d in Department)}")
        return 1
    modules = modules_for_department(dept)
    for m in modules:
        manager_note = " (also open to managers)" if MODULE_RULES[m].managers else ""
        print(f"  {m.value}{manager_note}")
    print(f"\n{len(modules)} module(s)")
    return 0


if __name__ == "__main__":
    cmd = sys.argv[1] if len(sys.argv) > 1 else ""
    if cmd == "check-access":
        sys.exit(check_access())
    elif cmd == "modules" and len(sys.argv) > 2:
        sys.exit(list_modules(sys.argv[2]))
    else:
        print("Usage: python -m workhub.cli [check-access|modules <department>]")
        sys.exit(2)
