# Known keypair and the transfer it signs, shared by the tests.

ALICE_PUB = "1220355897db094c7aac8242e0bce8ae6a4db8b6c08b38bed3290ea3560a6515cc3b"
ALICE_PRIV = (
    "12406f77b49c99cb22d63f84ffc7da54da0141b91f86627dda1c37a0bfe3eb1111e7"
    "355897db094c7aac8242e0bce8ae6a4db8b6c08b38bed3290ea3560a6515cc3b"
)
ALICE_ADDRESS = "2674ae64cb5206b2afc6b6fbd0e5a65c025b5016"
BOB_ADDRESS = "efee576f3d668674bc73e007f6abfa243311bd37"

# 123 ThetaWei from alice to bob, fee 4 GammaWei, gas 5, sequence 1
SIGNED_SEND_TX = (
    "12c7010805120c0a0847616d6d6157656910041a8e010a142674ae64cb5206b2afc6b6fbd0e5a65c"
    "025b5016120c0a085468657461576569107b1801224212406c6dbdf253f520028743823c395cdb03"
    "dbf7ed399a8e6b251b5ac11d2ee1cb52c92380474884d281933288b7e7249954c8d595c94d85c19d"
    "9083c4307b811a062a221220355897db094c7aac8242e0bce8ae6a4db8b6c08b38bed3290ea3560a"
    "6515cc3b22240a14efee576f3d668674bc73e007f6abfa243311bd37120c0a085468657461576569"
    "107b"
)
