# config/fsm_rules.py
from config.enums import State as st
from config.enums import Transition as tr

INITIAL_STATE = st.LOGIN

# Unified FSM for the application (one source of truth for all UI modes)
MAIN_TRANSITIONS = {
    st.LOGIN: {
        tr.CLOSE_LOGIN: st.OCCASIONS,          # destination is filtered by the occasions module
    },
    st.OCCASIONS: {
        tr.GET_OCCASION: st.IDLE,              # load or create, then continue
        tr.SELECT_OCCASION: st.VIEW_OCCASION,
        tr.CANCEL_OCCASION: st.IDLE,
    },
    st.VIEW_OCCASION: {
        tr.EDIT_ITEM: st.EDIT_OCCASION,
        tr.DELETE_ITEM: st.DELETE_OCCASION,
        tr.CLOSE_OCCASION: st.VIEW_OCCASION,
        tr.REOPEN_OCCASION: st.VIEW_OCCASION,
        tr.START_OCCASION: st.OCCASIONS,
        tr.CLOSE_ITEM: st.IDLE,
    },
    st.EDIT_OCCASION: {
        tr.SAVE_OCCASION: st.VIEW_OCCASION,
        tr.CANCEL_EDIT: st.VIEW_OCCASION,
    },
    st.DELETE_OCCASION: {
        tr.DELETE_OCCASION: st.OCCASIONS,
        tr.CANCEL_DELETE: st.VIEW_OCCASION,
    },
    st.IDLE: {
        tr.START_RECEIPT: st.RECEIPT,
        tr.SELECT_ORDER: st.VIEW_ORDER,
        tr.TOGGLE_SETTINGS: st.SETTINGS,
        tr.START_OCCASION: st.OCCASIONS,
        tr.SELECT_OCCASION: st.VIEW_OCCASION,
    },
    st.RECEIPT: {
        tr.SELECT_CONSUMER: st.RECEIPT,
        tr.INCREMENT_PRODUCT: st.RECEIPT,
        tr.DECREMENT_PRODUCT: st.RECEIPT,
        tr.SUBMIT_RECEIPT: st.IDLE,
        tr.CANCEL_RECEIPT: st.IDLE,
        tr.RECEIPT_SETTINGS: st.RECEIPT_SETTINGS,
        tr.TOGGLE_SETTINGS: st.RECEIPT_SETTINGS,
    },
    st.RECEIPT_SETTINGS: {
        tr.CLOSE_SETTINGS: st.RECEIPT,
        tr.TOGGLE_SETTINGS: st.RECEIPT,
    },
    st.VIEW_ORDER: {
        tr.SELECT_ORDER: st.VIEW_ORDER,
        tr.EDIT_ITEM: st.EDIT_ORDER,
        tr.CLOSE_ITEM: st.IDLE,
    },
    st.EDIT_ORDER: {
        tr.SELECT_CONSUMER: st.EDIT_ORDER,
        tr.INCREMENT_PRODUCT: st.EDIT_ORDER,
        tr.DECREMENT_PRODUCT: st.EDIT_ORDER,
        tr.SAVE_ORDER: st.VIEW_ORDER,
        tr.CANCEL_EDIT: st.VIEW_ORDER,
        tr.CLOSE_ITEM: st.IDLE,
    },
    st.SETTINGS: {
        tr.TOGGLE_SETTINGS: st.IDLE,
        tr.SELECT_PRODUCT: st.VIEW_PRODUCT,
        tr.CREATE_PRODUCT: st.CREATE_PRODUCT,
        tr.SELECT_CONSUMER: st.VIEW_CONSUMER,
    },
    st.VIEW_PRODUCT: {
        tr.SELECT_PRODUCT: st.VIEW_PRODUCT,
        tr.EDIT_ITEM: st.EDIT_PRODUCT,
        tr.DELETE_ITEM: st.DELETE_PRODUCT,
        tr.UNTRASH_PRODUCT: st.VIEW_PRODUCT,
        tr.CLOSE_ITEM: st.SETTINGS,
        tr.TOGGLE_SETTINGS: st.IDLE,
    },
    st.CREATE_PRODUCT: {
        tr.SAVE_PRODUCT: st.VIEW_PRODUCT,
        tr.CANCEL_EDIT: st.SETTINGS,
        tr.CLOSE_ITEM: st.SETTINGS,
    },
    st.EDIT_PRODUCT: {
        tr.SAVE_PRODUCT: st.VIEW_PRODUCT,
        tr.CANCEL_EDIT: st.VIEW_PRODUCT,
        tr.CLOSE_ITEM: st.SETTINGS,
    },
    st.DELETE_PRODUCT: {
        tr.DELETE_PRODUCT: st.VIEW_PRODUCT,    # trashed products stay listed
        tr.CANCEL_DELETE: st.VIEW_PRODUCT,
    },
    st.VIEW_CONSUMER: {
        tr.SELECT_CONSUMER: st.VIEW_CONSUMER,
        tr.EDIT_ITEM: st.EDIT_CONSUMER,
        tr.CLOSE_ITEM: st.SETTINGS,
        tr.TOGGLE_SETTINGS: st.IDLE,
    },
    st.EDIT_CONSUMER: {
        tr.SAVE_CONSUMER: st.VIEW_CONSUMER,
        tr.CANCEL_EDIT: st.VIEW_CONSUMER,
        tr.CLOSE_ITEM: st.SETTINGS,
    },
}
