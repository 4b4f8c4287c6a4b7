"""Lua source for the atomic window procedures run by Redis.

Redis executes a script as a single command, so prune, count, decide and
record cannot interleave with another caller touching the same key. The
admitting and read-only procedures are rendered from one template and differ
only in the ``admit`` constant.
"""

from __future__ import annotations

from string import Template

# KEYS[1]: sorted set of entries (score = timestamp ms, member = "<ts>-<n>")
# ARGV: now_ms, window_ms, max_requests
_WINDOW_SCRIPT = Template(
    """
local key = KEYS[1]
local now = tonumber(ARGV[1])
local window = tonumber(ARGV[2])
local limit = tonumber(ARGV[3])
local admit = $admit

-- An entry exactly one window old still counts
redis.call('ZREMRANGEBYSCORE', key, '-inf', '(' .. string.format('%d', now - window))

local remaining = limit - redis.call('ZCARD', key)
local limited = remaining <= 0

if admit and not limited then
    local seq = redis.call('ZCOUNT', key, ARGV[1], ARGV[1])
    redis.call('ZADD', key, ARGV[1], ARGV[1] .. '-' .. seq)
    remaining = remaining - 1

    local newest = redis.call('ZRANGE', key, -1, -1, 'WITHSCORES')
    redis.call('PEXPIRE', key, string.format('%d', tonumber(newest[2]) + window - now))
end

local next_available = now
local oldest = redis.call('ZRANGE', key, 0, 0, 'WITHSCORES')
if oldest[2] then
    next_available = tonumber(oldest[2]) + window
end

return string.format('%d,%d,%s', remaining, next_available, tostring(limited))
"""
)


def render_window_script(*, admit: bool) -> str:
    """Return the window procedure source with the admit flag baked in."""
    return _WINDOW_SCRIPT.substitute(admit="true" if admit else "false")
