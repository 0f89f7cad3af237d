"""Lua scripts executed server-side by Redis

Redis runs a script as a single atomic step, which is what the call quota
needs: reading curr_calls and incrementing it in two round trips would let
concurrent redirects both observe curr_calls < max_calls.
"""

# KEYS[1]: directive record hash
# ARGV[1]: max_calls
# Returns the new curr_calls, -1 if the record doesn't exist, -2 if the quota is exhausted.
INCREMENT_CALLS_SCRIPT = """
if redis.call('EXISTS', KEYS[1]) == 0 then
    return -1
end
local curr_calls = tonumber(redis.call('HGET', KEYS[1], 'curr_calls') or '0')
if curr_calls >= tonumber(ARGV[1]) then
    return -2
end
return redis.call('HINCRBY', KEYS[1], 'curr_calls', 1)
"""

INCREMENT_CALLS_NOT_FOUND = -1
INCREMENT_CALLS_EXHAUSTED = -2
