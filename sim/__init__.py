"""
sim: simulation core
=====================

Modules
-------
network
    :class:`RoadNetwork` geometry, trajectories and :func:`build_network`.
car
    :class:`Car` vehicle state machine.
world
    :class:`VehicleManager` population, spawning and car-following queries.
signals
    :class:`SignalController` fixed-cycle traffic lights.
stats
    :class:`TrafficStats` completion statistics.
traffic_policy
    :class:`TrafficPolicy` tunable constants and :class:`SimSettings`.
sim_bridge
    :class:`SimBridge` background-thread orchestrator.
physics
    Low-level angle, unit and motion helpers.
"""
