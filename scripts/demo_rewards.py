"""Authenticate with Twitch and create (then delete) a channel-point reward.

Usage:
  export TWITCH_CLIENT_ID=... TWITCH_CHANNEL=...
  python scripts/demo_rewards.py "My reward" 100

Register http://localhost as a redirect URL of the Twitch application.
Binding port 80 may need elevated rights; set TWITCH_REDIRECT_URL to
http://localhost:<port> (and register that) to use another port.
"""

import asyncio
import logging
import sys

from twitchwebrequest import (
    Config,
    TwitchAuthentication,
    TwitchRequest,
    TwitchWebRequests,
    open_token_store,
)
from twitchwebrequest.responses import parse_rewards


async def main(title: str, cost: int) -> int:
    cfg = Config.from_env()
    print("TWITCH_CLIENT_ID present:", bool(cfg.client_id))
    print("TWITCH_CHANNEL:", cfg.channel)

    store = open_token_store(cfg.settings_path, app_name=cfg.app_name)
    auth = TwitchAuthentication(store, timeout=cfg.auth_timeout)
    auth.on_authenticated.subscribe(lambda ok: print("Authenticated:", ok))

    try:
        ok = await auth.start_validation_async(cfg.connection_information())
    except ValueError as exc:
        print("Setup failed:", exc)
        return 1
    if not ok:
        return 1

    request = TwitchRequest.for_authentication(auth, timeout=cfg.request_timeout)
    try:
        api = TwitchWebRequests(cfg.channel, request)
    except ValueError as exc:
        print("Setup failed:", exc)
        return 1

    if not await api.connect():
        print("Could not resolve the broadcaster id; try `reset` and authenticate again.")
        return 1
    print("Broadcaster id:", api.broadcaster_id)

    try:
        created = await api.create_reward(title, cost)
    except ValueError as exc:
        print("Invalid reward:", exc)
        return 1
    if not created.ok:
        print("Create reward failed:", created.status_code, created.body)
        return 1

    reward = parse_rewards(created.body).get_first()
    print("Created reward", reward.id, reward.title, reward.cost)

    deleted = await api.delete_reward(reward.id)
    print("Deleted reward:", deleted.is_success, deleted.code)
    return 0


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    if len(sys.argv) == 2 and sys.argv[1] == "reset":
        cfg = Config.from_env()
        open_token_store(cfg.settings_path, app_name=cfg.app_name).clear_token()
        print("Stored token cleared.")
        raise SystemExit(0)
    if len(sys.argv) != 3:
        print(__doc__)
        raise SystemExit(2)
    raise SystemExit(asyncio.run(main(sys.argv[1], int(sys.argv[2]))))
