"""Declarative rule tables for every record kind.

Each table is a JSON Schema (Draft 7) document interpreted by
``validators.RecordValidator``. Besides the standard keywords the tables use
``default`` (applied when a record is created) and ``trim`` (surrounding
whitespace is stripped before the value is checked).
"""
from typing import Any, Dict

# 24-hour clock, hours may omit the leading zero ("7:05", "07:05", "23:59")
START_TIME_PATTERN = r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$"

EMAIL_PATTERN = (
    r"^[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+@[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*$"
)

DATE_TIME: Dict[str, Any] = {"type": "string", "format": "date-time"}
REFERENCE: Dict[str, Any] = {"type": "string", "minLength": 1}

# Managed by the document store, never taken from the caller
CREATED_AT = {"createdAt": DATE_TIME, "updatedAt": DATE_TIME}


def _bounded(minimum=None, maximum=None) -> Dict[str, Any]:
    rule: Dict[str, Any] = {"type": "number"}
    if minimum is not None:
        rule["minimum"] = minimum
    if maximum is not None:
        rule["maximum"] = maximum
    return rule


def _text(max_length: int, required: bool = False) -> Dict[str, Any]:
    rule: Dict[str, Any] = {"type": "string", "maxLength": max_length, "trim": True}
    if required:
        rule["minLength"] = 1
    return rule


def _flag(default: bool) -> Dict[str, Any]:
    return {"type": "boolean", "default": default}


PUMP_SCHEMA = {
    "type": "object",
    "properties": {
        "name": _text(100, required=True),
        "type": {
            "type": "string",
            "enum": ["centrifugal", "submersible", "diaphragm", "peristaltic"],
        },
        "status": {
            "type": "string",
            "enum": ["active", "inactive", "maintenance", "fault"],
            "default": "inactive",
        },
        "flowRate": _bounded(0, 10000),  # L/min
        "pressure": _bounded(0, 200),  # PSI
        "health": {
            "type": "object",
            "properties": {
                "temperature": _bounded(0, 100),
                "vibration": _bounded(0),
                "efficiency": _bounded(0, 100),
                "lastMaintenance": DATE_TIME,
                "maintenanceDue": DATE_TIME,
            },
        },
        "lastActive": DATE_TIME,
        **CREATED_AT,
    },
    "required": ["name", "type", "status", "flowRate", "pressure"],
}

ZONE_SCHEMA = {
    "type": "object",
    "properties": {
        "name": _text(100, required=True),
        "pumpId": REFERENCE,
        "status": {
            "type": "string",
            "enum": ["active", "inactive", "maintenance"],
            "default": "active",
        },
        "area": _bounded(0, 1000000),  # square meters
        "vegetationType": {
            "type": "string",
            "enum": ["grass", "trees", "shrubs", "flowers", "crops", "mixed"],
        },
        "soilType": {
            "type": "string",
            "enum": ["clay", "sandy", "loam", "silt", "peat"],
        },
        "coordinates": {
            "type": "array",
            "minItems": 1,
            "items": {
                "type": "object",
                "properties": {
                    "latitude": _bounded(-90, 90),
                    "longitude": _bounded(-180, 180),
                },
                "required": ["latitude", "longitude"],
            },
        },
        "lastWatered": DATE_TIME,
        **CREATED_AT,
    },
    "required": ["name", "pumpId", "status", "area", "vegetationType", "soilType", "coordinates"],
}

SCHEDULE_SCHEMA = {
    "type": "object",
    "properties": {
        "zoneId": REFERENCE,
        "type": {"type": "string", "enum": ["interval", "calendar", "weather", "sensor"]},
        # 0 = Sunday ... 6 = Saturday
        "days": {
            "type": "array",
            "items": {"type": "integer", "minimum": 0, "maximum": 6},
        },
        "startTime": {"type": "string", "pattern": START_TIME_PATTERN},
        "duration": _bounded(1, 1440),  # minutes
        "enabled": _flag(True),
        "weatherConditions": {
            "type": "object",
            "properties": {
                "minTemperature": _bounded(-50, 60),
                "maxTemperature": _bounded(-50, 60),
                "maxHumidity": _bounded(0, 100),
                "maxWindSpeed": _bounded(0, 100),
                "noRain": {"type": "boolean"},
            },
        },
        "sensorThresholds": {
            "type": "object",
            "properties": {
                "soilMoisture": _bounded(0, 100),
                "temperature": _bounded(-50, 60),
            },
        },
        "nextRun": DATE_TIME,
        **CREATED_AT,
    },
    "required": ["zoneId", "type", "startTime", "duration", "enabled"],
}

NOTIFICATION_SCHEMA = {
    "type": "object",
    "properties": {
        "moduleName": _text(100, required=True),
        "action": _text(100, required=True),
        "status": {
            "type": "string",
            "enum": ["pending", "sent", "failed", "cancelled"],
            "default": "pending",
        },
        "payload": {
            "type": "object",
            "properties": {
                "title": _text(200, required=True),
                "message": _text(1000, required=True),
                "data": {"type": "object", "default": {}},
                "priority": {
                    "type": "string",
                    "enum": ["low", "normal", "high", "urgent"],
                    "default": "normal",
                },
                "category": _text(50),
            },
            "required": ["title", "message"],
        },
        **CREATED_AT,
    },
    "required": ["moduleName", "action", "status", "payload"],
}

NOTIFICATION_SUBSCRIBER_SCHEMA = {
    "type": "object",
    "properties": {
        "notificationId": REFERENCE,
        "userId": REFERENCE,
        "channel": {"type": "string", "enum": ["email", "push", "sms", "webhook"]},
        "seen": _flag(False),
        "seenAt": DATE_TIME,
        "sentAt": DATE_TIME,
        **CREATED_AT,
    },
    "required": ["notificationId", "userId", "channel", "seen"],
}

WATER_USAGE_SCHEMA = {
    "type": "object",
    "properties": {
        "zoneId": REFERENCE,
        "startDate": DATE_TIME,
        "endDate": DATE_TIME,
        "waterUsedLiters": _bounded(0),
        "durationMinutes": _bounded(0),
        "averageFlowRate": _bounded(0),
        "weatherConditions": {
            "type": "object",
            "properties": {
                "temperature": _bounded(-50, 60),
                "humidity": _bounded(0, 100),
                "windSpeed": _bounded(0, 100),
                "precipitation": _bounded(0),
            },
        },
        **CREATED_AT,
    },
    "required": [
        "zoneId", "startDate", "endDate",
        "waterUsedLiters", "durationMinutes", "averageFlowRate",
    ],
}

USER_PREFERENCES_SCHEMA = {
    "type": "object",
    "properties": {
        "userId": REFERENCE,
        "language": {
            "type": "string",
            "enum": ["en", "es", "fr", "de", "it", "pt"],
            "default": "en",
        },
        "timezone": {"type": "string", "default": "UTC"},
        "emailNotifications": {
            "type": "object",
            "properties": {
                "enabled": _flag(True),
                "scheduleUpdates": _flag(True),
                "systemAlerts": _flag(True),
                "maintenanceReminders": _flag(True),
                "weeklyReports": _flag(False),
            },
        },
        "pushNotifications": {
            "type": "object",
            "properties": {
                "enabled": _flag(True),
                "scheduleUpdates": _flag(True),
                "systemAlerts": _flag(True),
                "maintenanceReminders": _flag(True),
            },
        },
        "dashboard": {
            "type": "object",
            "properties": {
                "defaultView": {
                    "type": "string",
                    "enum": ["overview", "zones", "pumps", "schedules"],
                    "default": "overview",
                },
                "refreshInterval": {**_bounded(30, 300), "default": 60},  # seconds
                "showWeather": _flag(True),
                "showWaterUsage": _flag(True),
            },
        },
        **CREATED_AT,
    },
    "required": ["userId", "language", "timezone"],
}

SESSION_SCHEMA = {
    "type": "object",
    "properties": {
        "userId": REFERENCE,
        "refreshToken": REFERENCE,
        "userAgent": {"type": "string", "maxLength": 500},
        "ipAddress": {"type": "string", "maxLength": 45},  # IPv6 max length
        "expiresAt": DATE_TIME,
        "isValid": _flag(True),
        **CREATED_AT,
    },
    "required": ["userId", "refreshToken", "expiresAt", "isValid"],
}

USER_SCHEMA = {
    "type": "object",
    "properties": {
        "contact": REFERENCE,
        "address": REFERENCE,
        "password": REFERENCE,
        "blocked": _flag(True),
        "weather": REFERENCE,
        "reglage": REFERENCE,
        "creation_date": DATE_TIME,
    },
    "required": ["contact", "address", "password", "blocked"],
}

USER_CONTACT_SCHEMA = {
    "type": "object",
    "properties": {
        "email": {"type": "string", "pattern": EMAIL_PATTERN},
        "firstName": {"type": "string", "minLength": 1},
        "lastName": {"type": "string", "minLength": 1},
        "last_update": DATE_TIME,
    },
    "required": ["email", "firstName", "lastName"],
}

USER_ADDRESS_SCHEMA = {
    "type": "object",
    "properties": {
        "city": {"type": "string"},
        "country": {"type": "string", "default": "Tunisia"},
        "street": {"type": "string"},
        "codeZip": {"type": "number"},
        "last_update": DATE_TIME,
    },
}

USER_PASSWORD_SCHEMA = {
    "type": "object",
    "properties": {
        "password": {"type": "string", "minLength": 1},
        "last_update": DATE_TIME,
    },
    "required": ["password"],
}

ENTITY_SCHEMAS: Dict[str, Dict[str, Any]] = {
    "Pump": PUMP_SCHEMA,
    "Zone": ZONE_SCHEMA,
    "Schedule": SCHEDULE_SCHEMA,
    "Notification": NOTIFICATION_SCHEMA,
    "NotificationSubscriber": NOTIFICATION_SUBSCRIBER_SCHEMA,
    "WaterUsage": WATER_USAGE_SCHEMA,
    "UserPreferences": USER_PREFERENCES_SCHEMA,
    "Session": SESSION_SCHEMA,
    "User": USER_SCHEMA,
    "UserContact": USER_CONTACT_SCHEMA,
    "UserAddress": USER_ADDRESS_SCHEMA,
    "UserPassword": USER_PASSWORD_SCHEMA,
}
