"""Hydro telemetry coordinator.

Puente entre el dispositivo del invernadero (ESP32/STM32) y el dashboard:
- Ingesta de telemetría por MQTT → system_logs + system_status
- Control manual del chiller (MODE=MANUAL → CHILLER=ON|OFF)
"""

__version__ = "0.4.0"
