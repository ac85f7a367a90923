#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
A small slice of the FIT profile (from "Profile.xlsx" in the FIT SDK).

Only used to annotate text output with message and field names. Nothing
in the conversion itself depends on it, so it's fine for it to be
incomplete: anything missing is simply "unknown".

"""

UNKNOWN = 'unknown'

GLOBAL_MESG_NUMS = {
    0: 'file_id',
    1: 'capabilities',
    2: 'device_settings',
    3: 'user_profile',
    4: 'hrm_profile',
    5: 'sdm_profile',
    6: 'bike_profile',
    7: 'zones_target',
    8: 'hr_zone',
    9: 'power_zone',
    10: 'met_zone',
    12: 'sport',
    15: 'goal',
    18: 'session',
    19: 'lap',
    20: 'record',
    21: 'event',
    23: 'device_info',
    26: 'workout',
    27: 'workout_step',
    28: 'schedule',
    30: 'weight_scale',
    31: 'course',
    32: 'course_point',
    33: 'totals',
    34: 'activity',
    35: 'software',
    37: 'file_capabilities',
    38: 'mesg_capabilities',
    39: 'field_capabilities',
    49: 'file_creator',
    51: 'blood_pressure',
    53: 'speed_zone',
    55: 'monitoring',
    72: 'training_file',
    78: 'hrv',
    101: 'length',
    103: 'monitoring_info',
    106: 'slave_device',
    127: 'connectivity',
    128: 'weather_conditions',
    129: 'weather_alert',
    131: 'cadence_zone',
    132: 'hr',
    142: 'segment_lap',
    160: 'gps_metadata',
    161: 'camera_event',
    162: 'timestamp_correlation',
    164: 'gyroscope_data',
    165: 'accelerometer_data',
    206: 'field_description',
    207: 'developer_data_id',
    208: 'magnetometer_data',
    209: 'barometer_data',
    216: 'time_in_zone',
    225: 'set',
}

# Fields that mean the same thing in every message.
COMMON_FIELDS = {
    253: {'field_name': 'timestamp', 'units': 's'},
    254: {'field_name': 'message_index'},
}

MESSAGE_TYPES = {
    'file_id': {
        0: {'field_name': 'type'},
        1: {'field_name': 'manufacturer'},
        2: {'field_name': 'product'},
        3: {'field_name': 'serial_number'},
        4: {'field_name': 'time_created'},
        5: {'field_name': 'number'},
        8: {'field_name': 'product_name'}},
    'file_creator': {
        0: {'field_name': 'software_version'},
        1: {'field_name': 'hardware_version'}},
    'event': {
        0: {'field_name': 'event'},
        1: {'field_name': 'event_type'},
        2: {'field_name': 'data16'},
        3: {'field_name': 'data'},
        4: {'field_name': 'event_group'}},
    'device_info': {
        0: {'field_name': 'device_index'},
        1: {'field_name': 'device_type'},
        2: {'field_name': 'manufacturer'},
        3: {'field_name': 'serial_number'},
        4: {'field_name': 'product'},
        5: {'field_name': 'software_version'},
        6: {'field_name': 'hardware_version'},
        7: {'field_name': 'cum_operating_time', 'units': 's'},
        10: {'field_name': 'battery_voltage', 'units': 'V'},
        11: {'field_name': 'battery_status'},
        27: {'field_name': 'product_name'}},
    'record': {
        0: {'field_name': 'position_lat', 'units': 'semicircles'},
        1: {'field_name': 'position_long', 'units': 'semicircles'},
        2: {'field_name': 'altitude', 'units': 'm'},
        3: {'field_name': 'heart_rate', 'units': 'bpm'},
        4: {'field_name': 'cadence', 'units': 'rpm'},
        5: {'field_name': 'distance', 'units': 'm'},
        6: {'field_name': 'speed', 'units': 'm/s'},
        7: {'field_name': 'power', 'units': 'watts'},
        13: {'field_name': 'temperature', 'units': 'C'},
        53: {'field_name': 'fractional_cadence', 'units': 'rpm'},
        73: {'field_name': 'enhanced_speed', 'units': 'm/s'},
        78: {'field_name': 'enhanced_altitude', 'units': 'm'}},
    'lap': {
        0: {'field_name': 'event'},
        1: {'field_name': 'event_type'},
        2: {'field_name': 'start_time'},
        3: {'field_name': 'start_position_lat', 'units': 'semicircles'},
        4: {'field_name': 'start_position_long', 'units': 'semicircles'},
        5: {'field_name': 'end_position_lat', 'units': 'semicircles'},
        6: {'field_name': 'end_position_long', 'units': 'semicircles'},
        7: {'field_name': 'total_elapsed_time', 'units': 's'},
        8: {'field_name': 'total_timer_time', 'units': 's'},
        9: {'field_name': 'total_distance', 'units': 'm'},
        11: {'field_name': 'total_calories', 'units': 'kcal'},
        13: {'field_name': 'avg_speed', 'units': 'm/s'},
        14: {'field_name': 'max_speed', 'units': 'm/s'},
        15: {'field_name': 'avg_heart_rate', 'units': 'bpm'},
        16: {'field_name': 'max_heart_rate', 'units': 'bpm'},
        17: {'field_name': 'avg_cadence', 'units': 'rpm'},
        18: {'field_name': 'max_cadence', 'units': 'rpm'},
        19: {'field_name': 'avg_power', 'units': 'watts'},
        20: {'field_name': 'max_power', 'units': 'watts'},
        24: {'field_name': 'lap_trigger'},
        25: {'field_name': 'sport'}},
    'session': {
        0: {'field_name': 'event'},
        1: {'field_name': 'event_type'},
        2: {'field_name': 'start_time'},
        3: {'field_name': 'start_position_lat', 'units': 'semicircles'},
        4: {'field_name': 'start_position_long', 'units': 'semicircles'},
        5: {'field_name': 'sport'},
        6: {'field_name': 'sub_sport'},
        7: {'field_name': 'total_elapsed_time', 'units': 's'},
        8: {'field_name': 'total_timer_time', 'units': 's'},
        9: {'field_name': 'total_distance', 'units': 'm'},
        11: {'field_name': 'total_calories', 'units': 'kcal'},
        14: {'field_name': 'avg_speed', 'units': 'm/s'},
        15: {'field_name': 'max_speed', 'units': 'm/s'},
        16: {'field_name': 'avg_heart_rate', 'units': 'bpm'},
        17: {'field_name': 'max_heart_rate', 'units': 'bpm'},
        18: {'field_name': 'avg_cadence', 'units': 'rpm'},
        19: {'field_name': 'max_cadence', 'units': 'rpm'},
        20: {'field_name': 'avg_power', 'units': 'watts'},
        21: {'field_name': 'max_power', 'units': 'watts'},
        25: {'field_name': 'first_lap_index'},
        26: {'field_name': 'num_laps'}},
    'activity': {
        0: {'field_name': 'total_timer_time', 'units': 's'},
        1: {'field_name': 'num_sessions'},
        2: {'field_name': 'type'},
        3: {'field_name': 'event'},
        4: {'field_name': 'event_type'},
        5: {'field_name': 'local_timestamp'},
        6: {'field_name': 'event_group'}},
    'developer_data_id': {
        0: {'field_name': 'developer_id'},
        1: {'field_name': 'application_id'},
        2: {'field_name': 'manufacturer_id'},
        3: {'field_name': 'developer_data_index'},
        4: {'field_name': 'application_version'}},
    'field_description': {
        0: {'field_name': 'developer_data_index'},
        1: {'field_name': 'field_definition_number'},
        2: {'field_name': 'fit_base_type_id'},
        3: {'field_name': 'field_name'},
        4: {'field_name': 'array'},
        5: {'field_name': 'components'},
        6: {'field_name': 'scale'},
        7: {'field_name': 'offset'},
        8: {'field_name': 'units'},
        13: {'field_name': 'fit_base_unit_id'},
        14: {'field_name': 'native_mesg_num'},
        15: {'field_name': 'native_field_num'}},
}


def lookup_title(global_message_number, field_number=None):
    """Display name for a message or, given `field_number`, one of its
    fields. Never fails; unknowns are called 'unknown'."""
    name = GLOBAL_MESG_NUMS.get(global_message_number, UNKNOWN)
    if field_number is None:
        return name

    field = MESSAGE_TYPES.get(name, {}).get(field_number)
    if field is None:
        field = COMMON_FIELDS.get(field_number, {})
    return field.get('field_name', UNKNOWN)
