"""The key-value node state machine driven by the simulator."""