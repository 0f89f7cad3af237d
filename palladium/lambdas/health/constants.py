HEALTHY = 'HEALTHY'
UNHEALTHY = 'UNHEALTHY'
