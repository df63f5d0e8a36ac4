"""Central registry for Redis Lua scripts used across the application.

Scripts are registered at application startup for EVALSHA optimization. Each
script runs atomically inside Redis, which makes it the single serialization
point for every mutation of a snap row together with its claim rows.

Return Code Conventions:
    Every script returns a two element array ``{code, payload}``:

    - 0: Stale - the caller's expected ``version`` does not match the stored
         snap. The payload is the current snap JSON; callers re-read and retry.

    - 1: Success - the write was applied. The payload is the written JSON.

    - 2: Missing - the snap (or, for ``transition_claim``, the claim) does not
         exist. The payload is an empty string.

    - 3: Not active - the snap status is not ``active``. The payload is the
         current snap JSON.

    - 5: Duplicate - a claim row already exists for this claimer, or an entity
         with this identifier already exists. The payload is the existing JSON
         (empty for creations).

    - 6: Reservation mismatch - the stored claim does not carry the expected
         reservation id or status. The payload is the stored claim JSON or an
         empty string.

    Snap amounts are never computed in Lua (cjson decodes numbers as doubles,
    which loses precision for 18-decimal tokens). Callers compute the new snap
    JSON from a snapshot and the script only applies it if ``version`` still
    matches.
"""

SNAP_SCRIPTS = {
    "create_snap": """
        local snap_key = KEYS[1]
        local sender_index = KEYS[2]
        local all_index = KEYS[3]
        local snap_json = ARGV[1]
        local created_ts = tonumber(ARGV[2])
        local snap_id = ARGV[3]

        if redis.call('EXISTS', snap_key) == 1 then
            return {5, ''}
        end

        redis.call('SET', snap_key, snap_json)
        redis.call('ZADD', sender_index, created_ts, snap_id)
        redis.call('ZADD', all_index, created_ts, snap_id)
        return {1, snap_json}
    """,
    "reserve_claim": """
        local snap_key = KEYS[1]
        local claim_key = KEYS[2]
        local claims_index = KEYS[3]
        local expected_version = tonumber(ARGV[1])
        local new_snap_json = ARGV[2]
        local claim_json = ARGV[3]
        local claimed_ts = tonumber(ARGV[4])
        local claimer = ARGV[5]

        local snap_raw = redis.call('GET', snap_key)
        if not snap_raw then
            return {2, ''}
        end

        local snap = cjson.decode(snap_raw)
        if snap.status ~= 'active' then
            return {3, snap_raw}
        end

        local existing_claim = redis.call('GET', claim_key)
        if existing_claim then
            return {5, existing_claim}
        end

        if tonumber(snap.version) ~= expected_version then
            return {0, snap_raw}
        end

        redis.call('SET', snap_key, new_snap_json)
        redis.call('SET', claim_key, claim_json)
        redis.call('ZADD', claims_index, claimed_ts, claimer)
        return {1, new_snap_json}
    """,
    "release_claim": """
        local snap_key = KEYS[1]
        local claim_key = KEYS[2]
        local claims_index = KEYS[3]
        local expected_version = tonumber(ARGV[1])
        local restored_snap_json = ARGV[2]
        local reservation_id = ARGV[3]
        local claimer = ARGV[4]

        local snap_raw = redis.call('GET', snap_key)
        if not snap_raw then
            return {2, ''}
        end

        local claim_raw = redis.call('GET', claim_key)
        if not claim_raw then
            return {6, ''}
        end
        local claim = cjson.decode(claim_raw)
        if claim.id ~= reservation_id or claim.status ~= 'reserved' then
            return {6, claim_raw}
        end

        local snap = cjson.decode(snap_raw)
        if tonumber(snap.version) ~= expected_version then
            return {0, snap_raw}
        end

        redis.call('SET', snap_key, restored_snap_json)
        redis.call('DEL', claim_key)
        redis.call('ZREM', claims_index, claimer)
        return {1, restored_snap_json}
    """,
    "transition_claim": """
        local claim_key = KEYS[1]
        local reservation_id = ARGV[1]
        local expected_status = ARGV[2]
        local new_claim_json = ARGV[3]

        local claim_raw = redis.call('GET', claim_key)
        if not claim_raw then
            return {2, ''}
        end
        local claim = cjson.decode(claim_raw)
        if claim.id ~= reservation_id or claim.status ~= expected_status then
            return {6, claim_raw}
        end

        redis.call('SET', claim_key, new_claim_json)
        return {1, new_claim_json}
    """,
    "compare_and_set_snap": """
        local snap_key = KEYS[1]
        local expected_version = tonumber(ARGV[1])
        local new_snap_json = ARGV[2]

        local snap_raw = redis.call('GET', snap_key)
        if not snap_raw then
            return {2, ''}
        end
        local snap = cjson.decode(snap_raw)
        if tonumber(snap.version) ~= expected_version then
            return {0, snap_raw}
        end

        redis.call('SET', snap_key, new_snap_json)
        return {1, new_snap_json}
    """,
}

MERCHANT_SCRIPTS = {
    "create_merchant": (
        "if redis.call('EXISTS', KEYS[1]) == 1 then "
        "  return {5, ''} "
        "end "
        "redis.call('SET', KEYS[1], ARGV[1]) "
        "redis.call('ZADD', KEYS[2], ARGV[2], ARGV[3]) "
        "return {1, ARGV[1]}"
    ),
}

ALL_SCRIPTS = {**SNAP_SCRIPTS, **MERCHANT_SCRIPTS}


async def register_scripts(store) -> None:
    """Load every script into the store so `run_script` can use EVALSHA."""
    for name, script in ALL_SCRIPTS.items():
        await store.register_script(name, script)
