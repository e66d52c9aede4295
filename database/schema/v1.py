"""Schema v1 - Initial database schema.

This version includes tables for:
- Offers (written by the marketplace, transitioned to in_escrow here)
- Escrows created when an offer is accepted
- Notifications for both parties of an accepted offer
"""

schema = {
    'version': 1,
    'tables': [
        {
            'name': 'offers',
            'columns': [
                {'name': 'id', 'type': 'TEXT', 'primary_key': True},
                {'name': 'trader_id', 'type': 'TEXT', 'nullable': False},
                {'name': 'user_id', 'type': 'TEXT'},
                {'name': 'amount_usdt', 'type': 'DECIMAL(20,8)', 'nullable': False},
                {'name': 'asset', 'type': 'TEXT', 'nullable': False, 'default': "'USDT'"},
                {'name': 'price_etb_per_usdt', 'type': 'DECIMAL(20,8)', 'nullable': False},
                {'name': 'payment_method', 'type': 'TEXT', 'nullable': False},
                {'name': 'status', 'type': 'TEXT', 'nullable': False, 'default': "'pending'"},
                {'name': 'escrow_id', 'type': 'UUID'},
                {'name': 'created_at', 'type': 'TIMESTAMPTZ', 'nullable': False, 'default': 'now()'},
                {'name': 'updated_at', 'type': 'TIMESTAMPTZ', 'nullable': False, 'default': 'now()'}
            ],
            'indexes': [
                {'name': 'idx_offers_status', 'columns': ['status']},
                {'name': 'idx_offers_trader', 'columns': ['trader_id']},
                {'name': 'idx_offers_user', 'columns': ['user_id']}
            ]
        },
        {
            'name': 'escrows',
            'columns': [
                {'name': 'id', 'type': 'UUID', 'primary_key': True, 'default': 'gen_random_uuid()'},
                {'name': 'offer_id', 'type': 'TEXT', 'nullable': False},
                {'name': 'trader_id', 'type': 'TEXT', 'nullable': False},
                {'name': 'buyer_id', 'type': 'TEXT', 'nullable': False},
                {'name': 'amount_usdt', 'type': 'DECIMAL(20,8)', 'nullable': False},
                {'name': 'asset', 'type': 'TEXT', 'nullable': False},
                {'name': 'price_etb_per_usdt', 'type': 'DECIMAL(20,8)', 'nullable': False},
                {'name': 'payment_method', 'type': 'TEXT', 'nullable': False},
                {'name': 'status', 'type': 'TEXT', 'nullable': False, 'default': "'in_escrow'"},
                {'name': 'created_at', 'type': 'TIMESTAMPTZ', 'nullable': False, 'default': 'now()'}
            ],
            'foreign_keys': [
                {'columns': ['offer_id'], 'references': 'offers(id)'}
            ],
            'indexes': [
                {'name': 'idx_escrows_offer_id', 'columns': ['offer_id']},
                {'name': 'idx_escrows_trader', 'columns': ['trader_id']},
                {'name': 'idx_escrows_buyer', 'columns': ['buyer_id']}
            ]
        },
        {
            'name': 'notifications',
            'columns': [
                {'name': 'id', 'type': 'UUID', 'primary_key': True, 'default': 'gen_random_uuid()'},
                {'name': 'user_id', 'type': 'TEXT', 'nullable': False},
                {'name': 'type', 'type': 'TEXT', 'nullable': False},
                {'name': 'offer_id', 'type': 'TEXT'},
                {'name': 'message', 'type': 'TEXT', 'nullable': False},
                {'name': 'created_at', 'type': 'TIMESTAMPTZ', 'nullable': False, 'default': 'now()'}
            ],
            'indexes': [
                {'name': 'idx_notifications_user', 'columns': ['user_id', 'created_at']},
                {'name': 'idx_notifications_offer', 'columns': ['offer_id']}
            ]
        }
    ]
}
