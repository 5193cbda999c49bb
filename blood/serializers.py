from donor.serializers import donation_to_dict


def request_to_dict(blood_request):
    transfer = getattr(blood_request, 'transfer', None)
    return {
        'id': blood_request.id,
        'hospital_id': blood_request.hospital_id,
        'patient_name': blood_request.patient_name,
        'patient_age': blood_request.patient_age,
        'blood_type': blood_request.blood_type,
        'urgency': blood_request.urgency,
        'units_needed': blood_request.units_needed,
        'contact_number': blood_request.contact_number,
        'address': blood_request.address,
        'medical_notes': blood_request.medical_notes,
        'requester_name': blood_request.requester_name,
        'requester_email': blood_request.requester_email,
        'status': blood_request.status,
        'hospital_notes': blood_request.hospital_notes,
        'responded_at': blood_request.responded_at.isoformat() if blood_request.responded_at else None,
        'created_at': blood_request.created_at.isoformat(),
        'transfer_id': transfer.id if transfer else None,
    }


def transfer_to_dict(transfer):
    unit = transfer.unit
    blood_request = transfer.request
    return {
        'id': transfer.id,
        'blood_id': unit.blood_id,
        'blood_type': unit.blood_type,
        'rh_factor': unit.rh_factor,
        'component_type': unit.component_type,
        'volume_ml': unit.volume_ml,
        'request_id': blood_request.id,
        'patient_name': blood_request.patient_name,
        'urgency': blood_request.urgency,
        'transfer_date': transfer.transfer_date.isoformat(),
        'notes': transfer.notes,
        'unit': donation_to_dict(unit),
    }
