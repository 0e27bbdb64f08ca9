"""Redis Lua scripts for bucket consumption.

These scripts run the admission check and the increment as one atomic
operation so concurrent callers cannot both pass the check against the
same stale count.
"""

# KEYS[1]: counter key
# ARGV[1]: capacity, ARGV[2]: amount, ARGV[3]: window expiry in milliseconds
# Returns {admitted, count}: count is the new total when admitted, otherwise
# the unchanged current value.
CONSUME_IF_ROOM_SCRIPT = """
    local key = KEYS[1]
    local capacity = tonumber(ARGV[1])
    local amount = tonumber(ARGV[2])
    local expiry_ms = tonumber(ARGV[3])

    -- GET returns false for a missing key
    local current = tonumber(redis.call('GET', key) or '0')

    local remaining = capacity - math.min(current, capacity)
    if amount > remaining then
        return {0, current}
    end

    local total = redis.call('INCRBY', key, amount)

    -- The window starts with the increment that created the counter
    if total == amount then
        redis.call('PEXPIRE', key, expiry_ms)
    end

    return {1, total}
"""
