"""Plain-dict renderings of donor-side records for the JSON API."""


def donor_to_dict(donor, latest_donation=None):
    return {
        'donor_id': donor.id,
        'hospital_id': donor.hospital_id,
        'first_name': donor.first_name,
        'last_name': donor.last_name,
        'name': donor.get_name,
        'date_of_birth': donor.date_of_birth.isoformat() if donor.date_of_birth else None,
        'gender': donor.gender,
        'phone': donor.phone,
        'email': donor.email,
        'address': donor.address,
        'city': donor.city,
        'state': donor.state,
        'postal_code': donor.postal_code,
        'created_at': donor.created_at.isoformat() if donor.created_at else None,
        'blood_type': latest_donation.blood_type if latest_donation else None,
        'rh_factor': latest_donation.rh_factor if latest_donation else None,
        'last_donation_date': latest_donation.collection_date.isoformat() if latest_donation else None,
    }


def donation_to_dict(donation, today=None):
    donor = donation.donor
    return {
        'blood_id': donation.blood_id,
        'donor_id': donation.donor_id,
        'donor_name': donor.get_name if donor else None,
        'hospital_id': donation.hospital_id,
        'blood_type': donation.blood_type,
        'rh_factor': donation.rh_factor,
        'full_blood_type': donation.full_blood_type,
        'component_type': donation.component_type,
        'volume_ml': donation.volume_ml,
        'collection_date': donation.collection_date.isoformat(),
        'expiry_date': donation.expiry_date.isoformat(),
        'days_until_expiry': donation.days_until_expiry(today),
        'storage_location': donation.storage_location,
        'status': donation.status,
    }
