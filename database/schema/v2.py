"""Schema v2 - One escrow per offer, notification read flag.

The escrow lookup index on offer_id becomes unique so the database itself
rejects a second escrow for the same offer. Notifications gain an is_read
flag for the inbox.
"""

schema = {
    'version': 2,
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
                {'name': 'idx_escrows_offer_unique', 'columns': ['offer_id'], 'unique': True},
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
                {'name': 'is_read', 'type': 'BOOLEAN', 'nullable': False, 'default': 'false'},
                {'name': 'created_at', 'type': 'TIMESTAMPTZ', 'nullable': False, 'default': 'now()'}
            ],
            'indexes': [
                {'name': 'idx_notifications_user', 'columns': ['user_id', 'created_at']},
                {'name': 'idx_notifications_offer', 'columns': ['offer_id']}
            ]
        }
    ],
    'migrations': [
        # Replace the plain lookup index with a unique one
        '''
        CREATE UNIQUE INDEX IF NOT EXISTS idx_escrows_offer_unique ON escrows(offer_id);
        ''',
        '''
        DROP INDEX IF EXISTS idx_escrows_offer_id;
        ''',

        # Inbox read flag
        '''
        ALTER TABLE notifications
        ADD COLUMN IF NOT EXISTS is_read BOOLEAN NOT NULL DEFAULT false;
        '''
    ]
}
