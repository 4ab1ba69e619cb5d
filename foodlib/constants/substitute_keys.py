# db attribute -> ui key, None means the attribute never leaves the backend
from_db = {
    'partkey': None,
    'sortkey': None,
    'record_type': None,
    'password_hash': None,
    'id_': 'id',
    'mobile_number': 'mobileNumber',
    'dish_name': 'dishName',
    'cover_image': 'coverImage',
    'is_available': 'isAvailable',
    'user_id': 'user',
    'dish_id': 'dish',
    'order_items': 'orderItems',
    'total_amount': 'totalAmount',
    'shipping_address': 'shippingAddress',
    'billing_address': 'billingAddress',
    'order_status': 'orderStatus',
    'status_history': 'statusHistory',
    'review_text': 'reviewText',
    'dish_details': 'dishDetails',
    'date_created': 'createdAt',
    'date_updated': 'updatedAt',
    'created_by': 'createdBy',
    'updated_by': 'updatedBy'
}

to_db = {ui_key: db_key for db_key, ui_key in from_db.items() if ui_key}
to_db.update({
    '_id': 'id_',
    'phone': 'mobile_number',
    'newPassword': 'new_password',
    'confirmPassword': 'confirm_password'
})
