"""Sample study rooms loaded into an empty database."""

BASIC = "Whiteboard, Power Outlets, Large Table"

SAMPLE_ROOMS = [
    # 2nd floor
    {"name": "Group Study Room 2A", "floor": 2, "capacity": 4, "equipment": BASIC},
    {"name": "Group Study Room 2B", "floor": 2, "capacity": 4, "equipment": BASIC},
    {"name": "Group Study Room 2C", "floor": 2, "capacity": 6, "equipment": f"{BASIC}, TV"},
    {"name": "Group Study Room 2D", "floor": 2, "capacity": 6, "equipment": f"{BASIC}, TV"},
    # 3rd floor
    {"name": "Group Study Room 3A", "floor": 3, "capacity": 4, "equipment": BASIC},
    {"name": "Group Study Room 3B", "floor": 3, "capacity": 4, "equipment": BASIC},
    {"name": "Group Study Room 3C", "floor": 3, "capacity": 8, "equipment": f"{BASIC}, Projector"},
    {"name": "Group Study Room 3D", "floor": 3, "capacity": 8, "equipment": f"{BASIC}, Projector"},
    # 4th floor
    {"name": "Group Study Room 4A", "floor": 4, "capacity": 4, "equipment": BASIC},
    {"name": "Group Study Room 4B", "floor": 4, "capacity": 4, "equipment": BASIC},
    {"name": "Group Study Room 4C", "floor": 4, "capacity": 6, "equipment": f"{BASIC}, TV"},
    {"name": "Group Study Room 4D", "floor": 4, "capacity": 6, "equipment": f"{BASIC}, TV"},
    # 5th floor
    {"name": "Group Study Room 5A", "floor": 5, "capacity": 4, "equipment": BASIC},
    {"name": "Group Study Room 5B", "floor": 5, "capacity": 4, "equipment": BASIC},
    {"name": "Group Study Room 5C", "floor": 5, "capacity": 6, "equipment": f"{BASIC}, TV"},
    {"name": "Group Study Room 5D", "floor": 5, "capacity": 6, "equipment": f"{BASIC}, TV"},
    # 6th floor
    {"name": "Group Study Room 6A", "floor": 6, "capacity": 4, "equipment": BASIC},
    {"name": "Group Study Room 6B", "floor": 6, "capacity": 4, "equipment": BASIC},
    {"name": "Group Study Room 6C", "floor": 6, "capacity": 6, "equipment": f"{BASIC}, TV"},
    {"name": "Group Study Room 6D", "floor": 6, "capacity": 6, "equipment": f"{BASIC}, TV"},
]
