users_pk = 'users'
users_sk = '{user_id}'

user_emails_pk = 'user_emails'
user_emails_sk = '{email}'

dishes_pk = 'dishes'
dishes_sk = '{dish_id}'

orders_pk = 'orders'
orders_sk = '{order_id}'

reviews_pk = 'reviews'
reviews_sk = '{review_id}'
