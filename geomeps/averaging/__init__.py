from geomeps.averaging.cubature import adaptive_integration, CONVERGED, NOT_CONVERGED
