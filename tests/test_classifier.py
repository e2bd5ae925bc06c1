"""End-to-end tests for the swap classifier."""

from decimal import Decimal

from models.events import (
    ConfidenceTier,
    Erasure,
    LegRole,
    ParsedSwap,
    ReasonCode,
    SplitSwapPair,
    SwapDirection,
)
from parser.assets import USDC_MINT, WSOL_MINT
from parser.inference import ClassifierConfig, SwapClassifier, classify_transaction

WALLET = "wallet111"
POOL = "pool222"
BONK_MINT = "bonk_mint"


def balance(mint, decimals, pre, post, owner=WALLET, symbol=None):
    row = {
        "account": f"{owner}_{mint}",
        "owner": owner,
        "mint": mint,
        "decimals": decimals,
        "rawPreBalance": pre,
        "rawPostBalance": post,
    }
    if symbol:
        row["symbol"] = symbol
    return row


def swap_action(mint_in, amount_in, mint_out, amount_out, hint=WALLET):
    action = {
        "kind": "SWAP",
        "legIn": {"mint": mint_in, "rawAmount": amount_in},
        "legOut": {"mint": mint_out, "rawAmount": amount_out},
    }
    if hint:
        action["swapperHint"] = hint
    return action


def sol_for_usdc_payload():
    return {
        "signature": "sig_sol_usdc",
        "swapperHint": WALLET,
        "balanceChanges": [
            balance(WSOL_MINT, 9, 2_000_000_000, 1_000_000_000),
            balance(USDC_MINT, 6, 0, 95_000_000),
        ],
        "actions": [swap_action(WSOL_MINT, 1_000_000_000, USDC_MINT, 95_000_000)],
    }


class TestDirectSwaps:
    """Direct swaps against a core asset."""

    def setup_method(self):
        self.classifier = SwapClassifier()

    def test_sol_sold_for_usdc(self):
        result = self.classifier.classify(sol_for_usdc_payload())

        assert isinstance(result, ParsedSwap)
        assert result.signature == "sig_sol_usdc"
        assert result.swapper == WALLET
        assert result.direction == SwapDirection.DISPOSE
        assert result.base_asset.mint == WSOL_MINT
        assert result.quote_asset.mint == USDC_MINT
        assert result.base_amount == Decimal("1.0")
        assert result.quote_amount == Decimal("95.0")
        assert result.confidence == ConfidenceTier.HIGH
        assert result.leg_role == LegRole.SINGLE

    def test_token_bought_with_usdc_balance_only(self):
        result = self.classifier.classify({
            "signature": "sig_buy",
            "swapperHint": WALLET,
            "balanceChanges": [
                balance(USDC_MINT, 6, 25_000_000, 0),
                balance(BONK_MINT, 5, 0, 12_345_678, symbol="BONK"),
            ],
            "actions": [],
        })

        assert isinstance(result, ParsedSwap)
        assert result.direction == SwapDirection.ACQUIRE
        assert result.base_asset.symbol == "BONK"
        assert result.base_amount == Decimal("123.45678")
        assert result.quote_amount == Decimal("25")
        assert result.confidence == ConfidenceTier.MEDIUM

    def test_exactly_once_normalization(self):
        raw = 123_456_789_012_345_678_901
        for decimals in (0, 2, 6, 9, 18):
            result = self.classifier.classify({
                "signature": f"sig_{decimals}",
                "swapperHint": WALLET,
                "balanceChanges": [
                    balance(USDC_MINT, 6, 10_000_000, 0),
                    balance("token_mint", decimals, 0, raw),
                ],
            })
            assert result.base_amount == Decimal(raw) / (Decimal(10) ** decimals)

    def test_evidence_gap_fill_is_low_confidence(self):
        result = self.classifier.classify({
            "signature": "sig_gap",
            "swapperHint": WALLET,
            "balanceChanges": [balance(BONK_MINT, 5, 0, 1_000_000)],
            "actions": [
                {"kind": "TOKEN_TRANSFER", "sender": WALLET, "receiver": POOL,
                 "mint": USDC_MINT, "rawAmount": 50_000_000},
            ],
        })

        assert isinstance(result, ParsedSwap)
        assert result.direction == SwapDirection.ACQUIRE
        assert result.quote_asset.mint == USDC_MINT
        assert result.quote_amount == Decimal("50")
        assert result.base_amount == Decimal("10")
        assert result.confidence == ConfidenceTier.LOW

    def test_swap_action_fills_missing_balance(self):
        result = self.classifier.classify({
            "signature": "sig_fill",
            "swapperHint": WALLET,
            "balanceChanges": [balance(BONK_MINT, 5, 0, 1_000_000)],
            "actions": [swap_action(USDC_MINT, 50_000_000, BONK_MINT, 1_000_000)],
        })

        assert isinstance(result, ParsedSwap)
        assert result.quote_amount == Decimal("50")
        assert result.confidence == ConfidenceTier.HIGH

    def test_rent_refund_filtered(self):
        result = self.classifier.classify({
            "signature": "sig_rent",
            "swapperHint": WALLET,
            "balanceChanges": [
                balance(WSOL_MINT, 9, 0, 2_039_280),
                balance(USDC_MINT, 6, 0, 10_000_000),
                balance(BONK_MINT, 5, 100_000_000, 0),
            ],
        })

        assert isinstance(result, ParsedSwap)
        assert result.direction == SwapDirection.DISPOSE
        assert result.base_asset.mint == BONK_MINT
        assert result.quote_asset.mint == USDC_MINT
        assert result.evidence_summary["rent_refunds_filtered"] == 1

    def test_owner_analysis_swapper(self):
        raydium = "675kPX9MHTjS2zt1qfr1NYHuzeLXfQM9H24wFSUt1Mp8"
        result = self.classifier.classify({
            "signature": "sig_owner",
            "balanceChanges": [
                balance(USDC_MINT, 6, 10_000_000, 0),
                balance(BONK_MINT, 5, 0, 100_000_000),
                balance(USDC_MINT, 6, 0, 10_000_000, owner=raydium),
                balance(BONK_MINT, 5, 100_000_000, 0, owner=raydium),
            ],
        })

        assert isinstance(result, ParsedSwap)
        assert result.swapper == WALLET
        assert result.swapper_method == "owner_analysis"
        assert result.direction == SwapDirection.ACQUIRE

    def test_fee_only_native_row_is_not_a_traded_side(self):
        result = self.classifier.classify({
            "signature": "sig_fee_row",
            "fee_payer": WALLET,
            "fee": 5000,
            "balanceChanges": [
                balance(WSOL_MINT, 9, 1_000_000_000, 999_995_000),
                balance(USDC_MINT, 6, 50_000_000, 0),
                balance(BONK_MINT, 5, 0, 100_000_000),
            ],
            "actions": [swap_action(USDC_MINT, 50_000_000, BONK_MINT, 100_000_000)],
        })

        assert isinstance(result, ParsedSwap)
        assert result.direction == SwapDirection.ACQUIRE
        assert result.base_asset.mint == BONK_MINT
        assert result.quote_asset.mint == USDC_MINT
        assert result.base_amount == Decimal("1000")
        assert result.quote_amount == Decimal("50")
        assert result.amounts.fee_amount is None
        assert result.confidence == ConfidenceTier.HIGH
        assert result.evidence_summary["network_fee_removed"] == 5000

    def test_dust_third_asset_ignored(self):
        result = self.classifier.classify({
            "signature": "sig_dust_third",
            "swapperHint": WALLET,
            "balanceChanges": [
                balance(USDC_MINT, 6, 50_000_000, 0),
                balance(BONK_MINT, 5, 0, 100_000_000),
                balance("dust_mint", 9, 0, 1),
            ],
        })

        assert isinstance(result, ParsedSwap)
        assert result.quote_asset.mint == USDC_MINT
        assert result.base_asset.mint == BONK_MINT
        assert result.base_amount == Decimal("1000")
        assert result.evidence_summary["dust_assets"] == ["dust_mint"]

    def test_classify_transaction_helper(self):
        result = classify_transaction(sol_for_usdc_payload())
        assert isinstance(result, ParsedSwap)


class TestNativeFees:
    """Gross and net quote figures when the swapper pays fees in SOL."""

    def setup_method(self):
        self.classifier = SwapClassifier()

    def test_acquire_with_fee(self):
        result = self.classifier.classify({
            "signature": "sig_fee_buy",
            "fee_payer": WALLET,
            "fee": 5000,
            "balanceChanges": [
                balance(WSOL_MINT, 9, 2_000_000_000, 999_995_000),
                balance(BONK_MINT, 5, 0, 100_000_000),
            ],
            "actions": [swap_action(WSOL_MINT, 1_000_000_000, BONK_MINT, 100_000_000, hint=None)],
        })

        assert isinstance(result, ParsedSwap)
        assert result.direction == SwapDirection.ACQUIRE
        assert result.quote_asset.mint == WSOL_MINT
        assert result.quote_amount == Decimal("1.000005")
        assert result.amounts.gross_quote_amount == Decimal("1.000005")
        assert result.amounts.net_quote_amount == Decimal("1")
        assert result.amounts.fee_amount == Decimal("0.000005")
        assert result.confidence == ConfidenceTier.HIGH

    def test_dispose_with_fee(self):
        result = self.classifier.classify({
            "signature": "sig_fee_sell",
            "fee_payer": WALLET,
            "fee": 5000,
            "balanceChanges": [
                balance(WSOL_MINT, 9, 1_000_000_000, 1_999_995_000),
                balance(BONK_MINT, 5, 100_000_000, 0),
            ],
        })

        assert result.direction == SwapDirection.DISPOSE
        assert result.quote_amount == Decimal("0.999995")
        assert result.amounts.gross_quote_amount == Decimal("1")
        assert result.amounts.net_quote_amount == Decimal("0.999995")


class TestSplitSwaps:
    """Trades between two non-core assets."""

    def setup_method(self):
        self.classifier = SwapClassifier()

    def test_split_pair_with_matching_swap(self):
        result = self.classifier.classify({
            "signature": "sig_split",
            "swapperHint": WALLET,
            "balanceChanges": [
                balance("token_a_mint", 6, 5_000_000, 0),
                balance("token_b_mint", 9, 0, 2_000_000_000),
            ],
            "actions": [swap_action("token_a_mint", 5_000_000, "token_b_mint", 2_000_000_000)],
        })

        assert isinstance(result, SplitSwapPair)
        dispose, acquire = result.legs
        assert dispose.signature == acquire.signature == "sig_split"
        assert dispose.quote_asset == acquire.quote_asset
        assert result.pivot_asset.mint == USDC_MINT

        assert dispose.leg_role == LegRole.DISPOSE_LEG
        assert dispose.direction == SwapDirection.DISPOSE
        assert dispose.base_asset.mint == "token_a_mint"
        assert dispose.base_amount == Decimal("5")

        assert acquire.leg_role == LegRole.ACQUIRE_LEG
        assert acquire.direction == SwapDirection.ACQUIRE
        assert acquire.base_asset.mint == "token_b_mint"
        assert acquire.base_amount == Decimal("2")

        assert dispose.confidence == acquire.confidence == ConfidenceTier.HIGH
        assert dispose.quote_amount is None
        assert acquire.quote_amount is None
        assert dispose.storage_key != acquire.storage_key

    def test_multi_hop_route_collapses_to_split(self):
        result = self.classifier.classify({
            "signature": "sig_route",
            "swapperHint": WALLET,
            "balanceChanges": [
                balance("token_a_mint", 2, 1000, 0),
                balance("token_b_mint", 2, 0, 2000),
            ],
            "actions": [
                swap_action("token_a_mint", 1000, WSOL_MINT, 500_000_000),
                swap_action(WSOL_MINT, 500_000_000, "token_b_mint", 2000),
            ],
        })

        assert isinstance(result, SplitSwapPair)
        assert result.dispose_leg.base_amount == Decimal("10")
        assert result.acquire_leg.base_amount == Decimal("20")
        assert result.dispose_leg.evidence_summary["intermediate_assets"] == [WSOL_MINT]

    def test_dust_leg_leaves_single_side(self):
        result = self.classifier.classify({
            "signature": "sig_dust",
            "swapperHint": WALLET,
            "balanceChanges": [
                balance("token_a_mint", 9, 1, 0),
                balance("token_b_mint", 6, 0, 5_000_000),
            ],
        })

        assert isinstance(result, Erasure)
        assert result.reason_code == ReasonCode.SINGLE_SIDED_CHANGE
        assert result.debug_context["dust_assets"] == ["token_a_mint"]

    def test_small_leg_rejected(self):
        classifier = SwapClassifier(ClassifierConfig(min_split_leg_amount=Decimal("1")))
        result = classifier.classify({
            "signature": "sig_small_leg",
            "swapperHint": WALLET,
            "balanceChanges": [
                balance("token_a_mint", 6, 500_000, 0),
                balance("token_b_mint", 6, 0, 5_000_000),
            ],
        })

        assert isinstance(result, Erasure)
        assert result.reason_code == ReasonCode.BELOW_MINIMUM_VALUE
        assert result.debug_context["smallest_leg_amount"] == "0.500000"

    def test_split_with_fee_only_native_row(self):
        result = self.classifier.classify({
            "signature": "sig_split_fee",
            "fee_payer": WALLET,
            "fee": 5000,
            "balanceChanges": [
                balance(WSOL_MINT, 9, 1_000_000_000, 999_995_000),
                balance("token_a_mint", 6, 5_000_000, 0),
                balance("token_b_mint", 9, 0, 2_000_000_000),
            ],
            "actions": [swap_action("token_a_mint", 5_000_000, "token_b_mint", 2_000_000_000)],
        })

        assert isinstance(result, SplitSwapPair)
        assert result.dispose_leg.base_asset.mint == "token_a_mint"
        assert result.acquire_leg.base_asset.mint == "token_b_mint"
        assert result.dispose_leg.evidence_summary["network_fee_removed"] == 5000

    def test_route_through_native_with_fee_row(self):
        result = self.classifier.classify({
            "signature": "sig_route_fee",
            "fee_payer": WALLET,
            "fee": 5000,
            "balanceChanges": [
                balance(WSOL_MINT, 9, 1_000_000_000, 999_995_000),
                balance("token_a_mint", 2, 1000, 0),
                balance("token_b_mint", 2, 0, 2000),
            ],
            "actions": [
                swap_action("token_a_mint", 1000, WSOL_MINT, 500_000_000),
                swap_action(WSOL_MINT, 500_000_000, "token_b_mint", 2000),
            ],
        })

        assert isinstance(result, SplitSwapPair)
        assert result.dispose_leg.base_amount == Decimal("10")
        assert result.acquire_leg.base_amount == Decimal("20")
        assert result.dispose_leg.evidence_summary["intermediate_assets"] == [WSOL_MINT]


class TestRejections:
    """Every non-swap path ends in a typed erasure."""

    def setup_method(self):
        self.classifier = SwapClassifier()

    def test_single_balance_change_is_single_sided(self):
        result = self.classifier.classify({
            "signature": "sig_single",
            "swapperHint": WALLET,
            "balanceChanges": [balance("token_a_mint", 2, 1000, 0)],
            "actions": [],
        })

        assert isinstance(result, Erasure)
        assert result.reason_code == ReasonCode.SINGLE_SIDED_CHANGE

    def test_rejection_is_stable(self):
        payload = {
            "signature": "sig_single",
            "swapperHint": WALLET,
            "balanceChanges": [balance(USDC_MINT, 6, 0, 1_000_000_000)],
        }
        reasons = {self.classifier.classify(payload).reason_code for _ in range(3)}
        assert reasons == {ReasonCode.SINGLE_SIDED_CHANGE}

    def test_plain_transfer(self):
        result = self.classifier.classify({
            "signature": "sig_transfer",
            "swapperHint": WALLET,
            "actions": [
                {"kind": "NATIVE_TRANSFER", "sender": WALLET, "receiver": POOL,
                 "rawAmount": 1_000_000_000},
            ],
        })
        assert result.reason_code == ReasonCode.ONLY_TRANSFER_ACTIONS

    def test_same_asset_round_trip(self):
        result = self.classifier.classify({
            "signature": "sig_noop",
            "swapperHint": WALLET,
            "actions": [swap_action(USDC_MINT, 10_000_000, USDC_MINT, 10_000_000)],
        })
        assert result.reason_code == ReasonCode.SAME_ASSET_NO_OP

    def test_below_minimum_value(self):
        result = self.classifier.classify({
            "signature": "sig_small",
            "swapperHint": WALLET,
            "balanceChanges": [
                balance(USDC_MINT, 6, 1_000_000, 0),
                balance(BONK_MINT, 5, 0, 100_000),
            ],
        })
        assert result.reason_code == ReasonCode.BELOW_MINIMUM_VALUE

    def test_three_assets_invalid(self):
        result = self.classifier.classify({
            "signature": "sig_three",
            "swapperHint": WALLET,
            "balanceChanges": [
                balance("token_a_mint", 6, 5_000_000, 0),
                balance("token_b_mint", 6, 0, 5_000_000),
                balance("token_c_mint", 6, 0, 5_000_000),
            ],
        })
        assert result.reason_code == ReasonCode.INVALID_ASSET_COUNT

    def test_malformed_input(self):
        assert self.classifier.classify(None).reason_code == ReasonCode.MALFORMED_INPUT
        assert self.classifier.classify({"actions": []}).reason_code == ReasonCode.MALFORMED_INPUT

    def test_failed_transaction_ignores_actions(self):
        result = self.classifier.classify({
            "signature": "sig_failed",
            "swapperHint": WALLET,
            "status": "failed",
            "balanceChanges": [balance(WSOL_MINT, 9, 1_000_000_000, 999_995_000)],
            "actions": [swap_action(WSOL_MINT, 1_000_000_000, USDC_MINT, 95_000_000)],
        })

        assert isinstance(result, Erasure)
        assert result.reason_code == ReasonCode.SINGLE_SIDED_CHANGE
        assert result.debug_context["failed_transaction"] is True

    def test_failed_flag_leaves_stage_erasure_untouched(self):
        tx = self.classifier.normalizer.normalize({
            "signature": "sig_failed",
            "swapperHint": WALLET,
            "status": "failed",
        })
        stage_erasure = Erasure("sig_failed", ReasonCode.SINGLE_SIDED_CHANGE, {"dust_assets": []})

        result = self.classifier._erase(tx, stage_erasure)

        assert result.debug_context == {"dust_assets": [], "failed_transaction": True}
        assert stage_erasure.debug_context == {"dust_assets": []}
        assert result == stage_erasure

    def test_same_asset_rows_that_do_not_cancel(self):
        result = self.classifier.classify({
            "signature": "sig_partial",
            "swapperHint": WALLET,
            "balanceChanges": [
                balance(USDC_MINT, 6, 10_000_000, 0),
                {"account": "second_usdc", "owner": WALLET, "mint": USDC_MINT, "decimals": 6,
                 "rawPreBalance": 0, "rawPostBalance": 3_000_000},
            ],
        })

        assert isinstance(result, Erasure)
        assert result.reason_code == ReasonCode.SINGLE_SIDED_CHANGE
        assert result.debug_context["assets"][USDC_MINT]["raw"] == -7_000_000

    def test_wrap_is_same_asset_no_op(self):
        result = self.classifier.classify({
            "signature": "sig_wrap",
            "swapperHint": WALLET,
            "balanceChanges": [
                balance(WSOL_MINT, 9, 2_000_000_000, 1_000_000_000),
                {"account": "wsol_ata", "owner": WALLET, "mint": WSOL_MINT, "decimals": 9,
                 "rawPreBalance": 0, "rawPostBalance": 1_000_000_000},
            ],
            "actions": [
                {"kind": "NATIVE_TRANSFER", "sender": WALLET, "receiver": "wsol_ata",
                 "rawAmount": 1_000_000_000},
            ],
        })
        assert result.reason_code == ReasonCode.SAME_ASSET_NO_OP


class TestDeterminism:
    """Repeated classification gives identical output."""

    def test_byte_identical_swap(self):
        first = SwapClassifier().classify(sol_for_usdc_payload())
        second = SwapClassifier().classify(sol_for_usdc_payload())
        assert first.to_msgpack() == second.to_msgpack()

    def test_byte_identical_erasure(self):
        classifier = SwapClassifier()
        payload = {
            "signature": "sig_three",
            "swapperHint": WALLET,
            "balanceChanges": [
                balance("token_a_mint", 6, 5_000_000, 0),
                balance("token_b_mint", 6, 0, 5_000_000),
                balance("token_c_mint", 6, 0, 5_000_000),
            ],
        }
        assert classifier.classify(payload).to_msgpack() == classifier.classify(payload).to_msgpack()

    def test_payload_not_mutated(self):
        payload = sol_for_usdc_payload()
        SwapClassifier().classify(payload)
        assert payload == sol_for_usdc_payload()
