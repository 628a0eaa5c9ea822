from web3 import Web3


def sign_and_send_transaction(
    web3: Web3, function, args, from_address, private_key, value: int = None
):
    cnt = web3.eth.get_transaction_count(from_address)
    transaction = {
        "from": from_address,
        "nonce": cnt
    }
    if value is not None:
        transaction["value"] = value

    tx = function(*args).build_transaction(transaction)
    signed_tx = web3.eth.account.sign_transaction(tx, private_key)
    tx_hash = web3.eth.send_raw_transaction(signed_tx.raw_transaction)
    receipt = web3.eth.wait_for_transaction_receipt(tx_hash)
    return receipt
