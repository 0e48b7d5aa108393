"""Example: drive a check-in desk from Python (no UI).

Scans a parent QR payload, checks the first child in, then checks the whole
family out again.
"""

import sys

from kids_checkin.client.actions import run_action
from kids_checkin.client.desk import CheckinDesk
from kids_checkin.client.factory import build_client
from kids_checkin.main import load_settings


def main(base_url: str, qr_text: str) -> None:
    api, monitor = build_client(base_url=base_url, settings=load_settings(), store_path=".kids_checkin/session.json")
    if not monitor.check_once():
        print("backend is offline")
        return

    if not api.session.is_authenticated:
        api.login("admin@example.org", "admin123")

    desk = CheckinDesk(api)
    result = run_action(lambda: desk.scan(qr_text), session=api.session)
    if not result.ok:
        print(result.notice.message)
        return

    family = result.value
    print("family:", family.parent.display_name, [c.display_name for c in family.children])

    for child in desk.checkable_in()[:1]:
        print(run_action(lambda: desk.check_in(child.child_id), session=api.session, success="Checked in").notice)

    print(run_action(desk.check_out_all, session=api.session, success="Family checked out").notice)


if __name__ == "__main__":
    main(sys.argv[1], sys.argv[2])
